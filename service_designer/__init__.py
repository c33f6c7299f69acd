"""Service Designer configuration analysis.

Validates workflow graphs, compiles form definitions into JSON Schema /
UI Schema / visibility rule artifacts, and detects configuration gaps.
"""

__version__ = "0.1.0"
