"""URL slug derivation."""
import re

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug.

    Lower-cases, turns whitespace runs into a hyphen, drops anything outside
    ``[a-z0-9-]``, collapses repeated hyphens and trims them from both ends.
    May return an empty string, e.g. ``slugify("---") == ""``.
    """
    slug = _WHITESPACE.sub("-", text.lower())
    slug = _DISALLOWED.sub("", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")
