from pathlib import Path


def is_within(child: Path, parent: Path) -> bool:
    """True when ``child`` sits directly inside ``parent`` (non-recursive)."""
    try:
        return child.absolute().parent.resolve() == parent.resolve()
    except OSError:
        return False


def short_body(text: str, limit: int = 2000) -> str:
    # Server error pages can be huge HTML documents
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + f"... ({len(text) - limit} more chars)"
