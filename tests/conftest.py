"""
Shared pytest fixtures for all tests.

Provides configuration isolation and common configuration builders.
"""

import logging
from datetime import datetime, timezone

import pytest

from service_designer.core.config import reset_settings


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

_ENV_VARS = (
    "LOG_LEVEL",
    "LOG_FORMAT",
    "GAP_DEFAULT_SERVICE_TYPE",
    "GAP_CUSTOM_RULES_PATH",
    "GAP_REPORT_MAX_PER_CATEGORY",
)


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch):
    """
    Automatically isolate config for all tests.

    Clears settings-related environment variables and the cached Settings
    instance before and after each test.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level changed by configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# BUILDERS
# =============================================================================

@pytest.fixture
def fixed_timestamp():
    """A fixed form modification time."""
    return datetime(2024, 1, 15, 10, 30, 0, 123000, tzinfo=timezone.utc)


def make_role(role_id, name=None, is_start=False, role_type="USER",
              transitions=None, institution_ids=("inst-1",)):
    """Build a raw role dict with a PASSED status routing to the given roles."""
    statuses = [{"id": f"{role_id}-pending", "code": "PENDING", "transitions": []}]
    statuses.append({
        "id": f"{role_id}-passed",
        "code": "PASSED",
        "transitions": [
            {"id": f"{role_id}-to-{target}", "toRoleId": target, "sortOrder": i}
            for i, target in enumerate(transitions or [])
        ],
    })
    return {
        "id": role_id,
        "name": name or role_id.title(),
        "roleType": role_type,
        "isStartRole": is_start,
        "statuses": statuses,
        "institutionIds": list(institution_ids),
    }


@pytest.fixture
def role_factory():
    """Expose make_role to tests."""
    return make_role
