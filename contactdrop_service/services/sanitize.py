import re

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitise(value: str) -> str:
    """Replace ASCII control characters with spaces and trim the result."""
    return _CONTROL_CHARS_RE.sub(" ", value).strip()
