"""String normalization shared by all comparison routines."""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize(value: str | None) -> str:
    """Normalize a name or email for comparison.

    Lowercases, trims, and collapses whitespace runs to a single space.
    None and empty input normalize to "".

    Args:
        value: String to normalize

    Returns:
        Normalized string
    """
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value.lower().strip())


def normalize_full_name(first_name: str | None, last_name: str | None) -> str:
    """Normalize "first last" as a single string."""
    return normalize(f"{first_name or ''} {last_name or ''}")
