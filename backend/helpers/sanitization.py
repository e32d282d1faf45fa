"""
HTML escaping for user input interpolated into email bodies.

Escaping is order-sensitive and not idempotent: ``&`` is replaced first so
that the entities produced by the later replacements are not re-encoded.
Escape raw input exactly once.
"""

# Applied in order; "&" MUST stay first.
_HTML_REPLACEMENTS = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
)


def sanitize_for_html(content: str) -> str:
    """
    Escape HTML special characters and trim surrounding whitespace.

    Args:
        content: Raw text from user input

    Returns:
        Text safe for interpolation into HTML

    Examples:
        >>> sanitize_for_html("<script>alert('x')</script>")
        '&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt;'
        >>> sanitize_for_html("a & b")
        'a &amp; b'
        >>> sanitize_for_html("  hello  ")
        'hello'
    """
    for char, entity in _HTML_REPLACEMENTS:
        content = content.replace(char, entity)
    return content.strip()
