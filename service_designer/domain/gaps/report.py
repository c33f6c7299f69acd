"""Gap report formatting.

Renders a GapReport for the contexts that consume it:
- chat: conversational text, markdown or plain
- ui: structured summary with flattened locations
- fixes: (gap, fix) pairs for batch application

Nothing here changes the report; every function is a pure view over it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from service_designer.core.config import get_settings
from service_designer.domain.gaps.types import Gap, GapFix, GapReport

COMPLETE_MESSAGE = "No gaps detected. Your configuration appears complete and valid."
FIX_QUESTION = "Would you like me to fix these issues?"


@dataclass
class FormatOptions:
    """Options for chat formatting."""
    include_fixes: bool = True
    include_ids: bool = False
    max_per_category: Optional[int] = None  # None = unlimited
    use_markdown: bool = True

    @classmethod
    def from_settings(cls) -> "FormatOptions":
        return cls(max_per_category=get_settings().GAP_REPORT_MAX_PER_CATEGORY)


class FixEntry(NamedTuple):
    gap: Gap
    fix: GapFix


def format_location(gap: Gap) -> str:
    """Flatten a gap location, e.g. 'field "Email" in Contact Form'."""
    location = gap.location
    parts = [location.entity_type.value]
    if location.entity_name:
        parts.append(f'"{location.entity_name}"')
    if location.parent_name:
        parts.append(f"in {location.parent_name}")
    return " ".join(parts)


def _fixable(gaps: Iterable[Gap]) -> List[Gap]:
    return [g for g in gaps if g.fix is not None]


def _gaps_have(count: int) -> str:
    return f"{count} gap has" if count == 1 else f"{count} gaps have"


# =============================================================================
# Chat
# =============================================================================

def format_report_for_chat(
    report: GapReport,
    options: Optional[FormatOptions] = None,
) -> str:
    """Render a gap report as conversational text.

    Args:
        report: Output of GapAnalyzer.analyze
        options: Formatting options; defaults to markdown with fixes shown

    Returns:
        Multi-line text, grouped critical -> warning -> suggestion
    """
    opts = options or FormatOptions()
    md = opts.use_markdown

    if report.total_gaps == 0:
        title = "**Configuration Analysis Complete**" if md else "Configuration Analysis Complete"
        return f"{title}\n\n{COMPLETE_MESSAGE}"

    lines: List[str] = [
        "**Configuration Gaps Detected**\n" if md else "Configuration Gaps Detected\n",
        report.summary + "\n",
    ]

    for title, gaps in (
        ("Critical Issues", report.critical_gaps),
        ("Warnings", report.warning_gaps),
        ("Suggestions", report.suggestion_gaps),
    ):
        if gaps:
            lines.append(_format_section(title, gaps, opts))

    fixable_count = len(_fixable(report.all_gaps()))
    if fixable_count > 0:
        lines.append("")
        notice = f"{_gaps_have(fixable_count)} automatic fixes available."
        lines.append(f"**{notice}**" if md else notice)
        lines.append(FIX_QUESTION)

    return "\n".join(lines)


def _format_section(title: str, gaps: List[Gap], opts: FormatOptions) -> str:
    shown = gaps if opts.max_per_category is None else gaps[: max(opts.max_per_category, 0)]
    remaining = len(gaps) - len(shown)

    if opts.use_markdown:
        lines = [f"\n### {title} ({len(gaps)})\n"]
    else:
        lines = [f"\n{title} ({len(gaps)}):\n"]

    lines.extend(_format_item(gap, opts) for gap in shown)

    if remaining > 0:
        lines.append(f"  ... and {remaining} more")

    return "\n".join(lines)


def _format_item(gap: Gap, opts: FormatOptions) -> str:
    if opts.use_markdown:
        parts = [
            f"- **{gap.message}**",
            f"  - Location: {format_location(gap)}",
            f"  - Suggestion: {gap.suggestion}",
        ]
        if opts.include_fixes and gap.fix is not None:
            parts.append(f"  - Fix: {gap.fix.description}")
    else:
        parts = [
            f"- {gap.message}",
            f"  Location: {format_location(gap)}",
            f"  Suggestion: {gap.suggestion}",
        ]
        if opts.include_fixes and gap.fix is not None:
            parts.append(f"  Fix: {gap.fix.description}")

    if opts.include_ids:
        parts.append(f"  ID: {gap.id}")

    return "\n".join(parts)


def generate_fix_prompt(report: GapReport) -> Optional[str]:
    """Offer to apply the available fixes, or None if nothing is fixable."""
    critical = len(_fixable(report.critical_gaps))
    warnings = len(_fixable(report.warning_gaps))
    suggestions = len(_fixable(report.suggestion_gaps))

    if critical + warnings + suggestions == 0:
        return None

    parts: List[str] = []
    if critical:
        parts.append(f"{critical} critical")
    if warnings:
        parts.append(f"{warnings} warning{'s' if warnings > 1 else ''}")
    if suggestions:
        parts.append(f"{suggestions} suggestion{'s' if suggestions > 1 else ''}")

    return (
        f"I can automatically fix {', '.join(parts)}. Would you like me to fix all "
        "issues, or would you prefer to select specific ones?"
    )


# =============================================================================
# UI
# =============================================================================

@dataclass
class UiGapItem:
    id: str
    type: str
    severity: str
    message: str
    suggestion: str
    location: str
    has_fix: bool
    fix_action: Optional[str] = None
    fix_description: Optional[str] = None

    @classmethod
    def from_gap(cls, gap: Gap) -> "UiGapItem":
        return cls(
            id=gap.id,
            type=gap.type.value,
            severity=gap.severity.value,
            message=gap.message,
            suggestion=gap.suggestion,
            location=format_location(gap),
            has_fix=gap.fix is not None,
            fix_action=gap.fix.action.value if gap.fix else None,
            fix_description=gap.fix.description if gap.fix else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "suggestion": self.suggestion,
            "location": self.location,
            "hasFix": self.has_fix,
        }
        if self.has_fix:
            data["fix"] = {"action": self.fix_action, "description": self.fix_description}
        return data


@dataclass
class UiGapReport:
    """Structured gap summary for rendering in the designer UI."""
    timestamp: str
    total_gaps: int
    summary: str
    fixable_count: int
    critical: List[UiGapItem] = field(default_factory=list)
    warnings: List[UiGapItem] = field(default_factory=list)
    suggestions: List[UiGapItem] = field(default_factory=list)

    @property
    def has_fixable_gaps(self) -> bool:
        return self.fixable_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "totalGaps": self.total_gaps,
            "summary": self.summary,
            "hasFixableGaps": self.has_fixable_gaps,
            "fixableCount": self.fixable_count,
            "critical": [i.to_dict() for i in self.critical],
            "warnings": [i.to_dict() for i in self.warnings],
            "suggestions": [i.to_dict() for i in self.suggestions],
        }


def format_report_for_ui(report: GapReport) -> UiGapReport:
    """Convert a gap report to a UI-friendly summary."""
    return UiGapReport(
        timestamp=report.timestamp.isoformat(),
        total_gaps=report.total_gaps,
        summary=report.summary,
        fixable_count=len(_fixable(report.all_gaps())),
        critical=[UiGapItem.from_gap(g) for g in report.critical_gaps],
        warnings=[UiGapItem.from_gap(g) for g in report.warning_gaps],
        suggestions=[UiGapItem.from_gap(g) for g in report.suggestion_gaps],
    )


# =============================================================================
# Fix extraction
# =============================================================================

def get_fixes_from_report(
    report: GapReport,
    gap_ids: Optional[Iterable[str]] = None,
) -> List[FixEntry]:
    """Collect (gap, fix) pairs in report order.

    Args:
        report: Gap report
        gap_ids: Restrict to these gap ids; None means every fixable gap

    Returns:
        FixEntry list, critical first
    """
    wanted = set(gap_ids) if gap_ids is not None else None
    return [
        FixEntry(gap=gap, fix=gap.fix)
        for gap in _fixable(report.all_gaps())
        if wanted is None or gap.id in wanted
    ]
