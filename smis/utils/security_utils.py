import re

LIKE_ESCAPE = "\\"


def sanitize_search_term(term: str) -> str:
    """Sanitize search terms for LIKE queries"""
    if not isinstance(term, str):
        return ""

    # Escape LIKE wildcards so they match literally
    sanitized = re.sub(r"[%_\\]", r"\\\g<0>", term.strip())
    # Limit length
    return sanitized[:100]


def like_pattern(term: str) -> str:
    return f"%{sanitize_search_term(term)}%"
