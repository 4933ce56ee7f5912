from typing import Optional


def norm_str(s: Optional[str]) -> Optional[str]:
    if isinstance(s, str):
        s = s.strip()
        return s or None
    return None


def norm_email(s: Optional[str]) -> str:
    """Allow-list key: trimmed and lower-cased, '' for missing."""
    return (norm_str(s) or "").lower()


def first_line(s: Optional[str]) -> Optional[str]:
    """First line of a multi-line cell, trimmed; None when that line is blank."""
    lines = (s or "").splitlines()
    return norm_str(lines[0]) if lines else None
