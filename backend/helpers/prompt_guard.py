"""
Screening of chat messages before they reach the language model.

Detects prompt-injection attempts and off-policy requests, scores how
suspicious a message looks, and escapes the characters that could be read
as markup or prompt delimiters.
"""

import re

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Attempts to drop the instructions
        r"ignore\s+(previous|all|above|prior|earlier)\s+(instructions?|prompts?|rules?)",
        r"disregard\s+(all|your|the|any)\s+(instructions?|prompts?|rules?|guidelines?)",
        r"forget\s+(everything|all|your|the)\s+(instructions?|prompts?|training)",
        r"override\s+(your|the|all)\s+(instructions?|rules?|guidelines?)",
        r"bypass\s+(your|the|all)\s+(instructions?|rules?|filters?|safety)",
        # Identity changes
        r"you\s+are\s+now\s+(a|an|the)",
        r"pretend\s+(you\s+are|to\s+be|you're)",
        r"act\s+(as\s+(if|a|an)|like\s+(you|a))",
        r"roleplay\s+as",
        r"impersonate",
        r"assume\s+the\s+(role|identity|persona)",
        # System prompt extraction
        r"what\s+(is|are)\s+your\s+(system\s+)?prompt",
        r"show\s+(me\s+)?(your\s+)?(system\s+)?prompt",
        r"reveal\s+(your\s+)?(system\s+)?instructions",
        r"print\s+(your\s+)?(system\s+)?prompt",
        r"output\s+(your\s+)?(initial|system)\s+instructions",
        # Chat-template delimiters
        r"\[INST\]",
        r"\[/INST\]",
        r"<<SYS>>",
        r"<\|im_start\|>",
        r"<\|im_end\|>",
        r"\[SYSTEM\]",
        r"```\s*(system|assistant|user)\s*\n",
        # Fake turn markers
        r"system\s*:\s*\n",
        r"assistant\s*:\s*\n",
        r"human\s*:\s*\n",
        # Known jailbreaks
        r"DAN\s*mode",
        r"developer\s+mode",
        r"do\s+anything\s+now",
        r"evil\s+(mode|assistant|ai)",
        r"unlock\s+(your\s+)?full\s+potential",
    )
)

BLOCKED_CONTENT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Hacking and exploits
        r"how\s+to\s+hack",
        r"exploit\s+(vulnerability|code|system)",
        r"create\s+(malware|virus|trojan)",
        r"sql\s+injection",
        r"xss\s+attack",
        # Sensitive personal data
        r"credit\s*card\s*(number|info)",
        r"social\s*security\s*(number|#)",
        r"bank\s*account\s*(number|details)",
        r"passport\s*(number|info)",
        r"generate\s+(a\s+)?(fake|real)\s+(credit\s*card|ssn|passport)",
        # Illegal activity
        r"how\s+to\s+(steal|hack|break\s+into)",
    )
)

MAX_USER_INPUT_LENGTH = 500

INJECTION_RISK_WEIGHT = 50
BLOCKED_CONTENT_RISK_WEIGHT = 40
LONG_INPUT_THRESHOLD = 400
LONG_INPUT_RISK_WEIGHT = 10
EXCESSIVE_NEWLINE_THRESHOLD = 5
EXCESSIVE_NEWLINE_RISK_WEIGHT = 10
CODE_MARKUP_RISK_WEIGHT = 15
MAX_RISK_SCORE = 100

# Messages scoring at or above this are refused
HIGH_RISK_THRESHOLD = 70

# Applied in order. "&" is left alone: the model reads text, not HTML.
_DANGEROUS_CHARS = (
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("`", "&#x60;"),
    ("\\", "&#x5C;"),
)

_CODE_OR_MARKUP = re.compile(r"```|</?[a-z][\s\S]*>", re.IGNORECASE)
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _matches_any(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    normalized = text.lower().strip()
    return any(pattern.search(normalized) for pattern in patterns)


def detect_prompt_injection(text: str) -> bool:
    """True if the message tries to override or extract the instructions."""
    return _matches_any(INJECTION_PATTERNS, text)


def contains_blocked_content(text: str) -> bool:
    """True if the message asks for something the assistant must refuse."""
    return _matches_any(BLOCKED_CONTENT_PATTERNS, text)


def calculate_risk_score(text: str) -> int:
    """
    Score a message from 0 to 100.

    Injection and blocked content weigh most; long input, many line breaks
    and code or markup add smaller amounts.
    """
    score = 0

    if detect_prompt_injection(text):
        score += INJECTION_RISK_WEIGHT
    if contains_blocked_content(text):
        score += BLOCKED_CONTENT_RISK_WEIGHT
    if len(text) > LONG_INPUT_THRESHOLD:
        score += LONG_INPUT_RISK_WEIGHT
    if text.count("\n") > EXCESSIVE_NEWLINE_THRESHOLD:
        score += EXCESSIVE_NEWLINE_RISK_WEIGHT
    if _CODE_OR_MARKUP.search(text):
        score += CODE_MARKUP_RISK_WEIGHT

    return min(MAX_RISK_SCORE, score)


def sanitize_user_input(text: str) -> str:
    """
    Prepare an accepted message for the model.

    Trims and truncates to MAX_USER_INPUT_LENGTH, escapes markup and quote
    characters, collapses runs of blank lines and strips control characters
    (newline and tab are kept).

    Examples:
        >>> sanitize_user_input("  <b>ciao</b>  ")
        '&lt;b&gt;ciao&lt;/b&gt;'
    """
    sanitized = text.strip()[:MAX_USER_INPUT_LENGTH]

    for char, entity in _DANGEROUS_CHARS:
        sanitized = sanitized.replace(char, entity)

    sanitized = _EXTRA_NEWLINES.sub("\n\n", sanitized)
    return _CONTROL_CHARS.sub("", sanitized)
