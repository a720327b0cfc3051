"""Date formatting tool."""

from datetime import date, datetime

from agent_ops.errors import ToolError

DEFAULT_FORMAT = "%B %d, %Y"


def _parse(date_string: str) -> date | datetime:
    value = date_string.strip()
    lowered = value.lower()
    if lowered == "today":
        return date.today()
    if lowered == "now":
        return datetime.now()

    # Accept a trailing Z, which fromisoformat rejects on older interpreters
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        if "T" in value or " " in value:
            return datetime.fromisoformat(value)
        return date.fromisoformat(value)
    except ValueError:
        raise ToolError(f"Unrecognised date: {date_string!r} (expected ISO-8601, e.g. 2024-01-15)")


def format_date(date_string: str, output_format: str = DEFAULT_FORMAT) -> str:
    """Reformat an ISO-8601 date for display.

    Args:
        date_string: "2024-01-15", "2024-01-15T09:30:00", "today" or "now".
        output_format: strftime pattern, "January 15, 2024" style by default.
    """
    if not isinstance(date_string, str):
        raise ToolError(f"Date must be text, got {type(date_string).__name__}")
    if not isinstance(output_format, str):
        raise ToolError(f"Output format must be text, got {type(output_format).__name__}")
    if not date_string.strip():
        raise ToolError("Empty date")
    parsed = _parse(date_string)
    try:
        return parsed.strftime(output_format)
    except ValueError as e:
        raise ToolError(f"Invalid output format {output_format!r}: {e}")
