"""
Filtering of language-model replies before they are returned to visitors.

Replies are stripped of markup, links to other sites are reduced to their
text, and replies that look like a leaked prompt or a successful jailbreak
are replaced by a fixed fallback.
"""

import re
from urllib.parse import urlparse

from helpers.language import Locale, get_chat_fallback_reply
from models.config import settings

MAX_REPLY_LENGTH = 1000
MIN_REPLY_LENGTH = 10

_TAGS = re.compile(r"<[^>]*>")
_BARE_AMPERSAND = re.compile(r"&(?!amp;|lt;|gt;|quot;|#x27;)")
_JAVASCRIPT_LINK = re.compile(r"\[([^\]]*)\]\(javascript:[^)]*\)", re.IGNORECASE)
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_EXTRA_SPACES = re.compile(r" {3,}")


def _site_host() -> str:
    return urlparse(settings.SITE_URL).hostname or ""


def _inappropriate_patterns() -> tuple[re.Pattern[str], ...]:
    host = re.escape(_site_host())
    return tuple(
        re.compile(pattern, re.IGNORECASE)
        for pattern in (
            # Leaked instructions
            r"my\s+(system\s+)?prompt\s+(is|says|tells)",
            r"i\s+(was|am)\s+instructed\s+to",
            r"my\s+instructions\s+(are|say)",
            # Jailbreak confirmations
            r"i\s+can\s+now\s+do\s+anything",
            r"dan\s+mode\s+(activated|enabled)",
            r"developer\s+mode\s+(activated|enabled)",
            # Script injection
            r"<script[\s\S]*?>[\s\S]*?</script>",
            r"javascript:",
            r"on\w+\s*=",
            # Executables on other hosts
            rf"https?://(?!{host})[^\s]+\.(exe|bat|cmd|sh|ps1)",
        )
    )


def sanitize_ai_response(response: str) -> str:
    """
    Make a model reply safe to display.

    Removes tags, escapes what is left of ``& < >``, unwraps ``javascript:``
    and off-site markdown links to their text, caps the length and tidies
    whitespace.
    """
    sanitized = _TAGS.sub("", response)
    sanitized = _BARE_AMPERSAND.sub("&amp;", sanitized)
    sanitized = sanitized.replace("<", "&lt;").replace(">", "&gt;")

    sanitized = _JAVASCRIPT_LINK.sub(r"\1", sanitized)
    external_link = re.compile(
        rf"\[([^\]]*)\]\((https?://(?!{re.escape(_site_host())})[^)]+)\)",
        re.IGNORECASE,
    )
    sanitized = external_link.sub(r"\1", sanitized)

    if len(sanitized) > MAX_REPLY_LENGTH:
        sanitized = sanitized[:MAX_REPLY_LENGTH] + "..."

    sanitized = _EXTRA_NEWLINES.sub("\n\n", sanitized)
    sanitized = _EXTRA_SPACES.sub("  ", sanitized)
    return sanitized.strip()


def validate_response(response: str) -> bool:
    """False for empty or very short replies and for leaked or unsafe content."""
    if len(response.strip()) < MIN_REPLY_LENGTH:
        return False
    return not any(pattern.search(response) for pattern in _inappropriate_patterns())


def process_ai_response(response: str, locale: Locale) -> str:
    """Sanitize a reply, falling back to a fixed message if it does not pass."""
    sanitized = sanitize_ai_response(response)
    if not validate_response(sanitized):
        return get_chat_fallback_reply(locale)
    return sanitized
