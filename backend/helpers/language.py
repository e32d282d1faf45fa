"""Language utility functions and locale-keyed copy for the contact pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from models.chat_types import ChatBlockReason


class Locale(str, Enum):
    """Site locales."""

    IT = "it"
    EN = "en"


DEFAULT_LOCALE = Locale.IT


def normalize_locale(value: Any) -> Locale:
    """
    Coerce a submitted locale to a supported one.

    Handles values like "en", "EN", "en-US". Anything absent or
    unrecognized falls back to Italian.
    """
    if not isinstance(value, str) or not value:
        return DEFAULT_LOCALE

    lang = value.split("-")[0].split("_")[0].strip().lower()
    try:
        return Locale(lang)
    except ValueError:
        return DEFAULT_LOCALE


@dataclass(frozen=True)
class ContactCopy:
    """User-facing strings for one locale."""

    success: str
    error: str
    default_company: str
    language_label: str


CONTACT_COPY: dict[Locale, ContactCopy] = {
    Locale.IT: ContactCopy(
        success="Messaggio inviato con successo!",
        error="Si è verificato un errore. Riprova più tardi.",
        default_company="Non specificata",
        language_label="Italiano",
    ),
    Locale.EN: ContactCopy(
        success="Message sent successfully!",
        error="An error occurred. Please try again later.",
        default_company="Not specified",
        language_label="English",
    ),
}

_missing_locales = set(Locale) - set(CONTACT_COPY)
if _missing_locales:
    raise RuntimeError(
        f"CONTACT_COPY has no entry for: {sorted(m.value for m in _missing_locales)}"
    )


def get_contact_copy(locale: Locale) -> ContactCopy:
    """Get the contact copy for a locale."""
    return CONTACT_COPY[locale]


CHAT_BLOCK_COPY: dict[ChatBlockReason, dict[Locale, str]] = {
    ChatBlockReason.RATE_LIMITED: {
        Locale.IT: "Hai inviato troppi messaggi. Attendi qualche secondo.",
        Locale.EN: "Too many messages. Please wait a moment.",
    },
    ChatBlockReason.SESSION_LIMIT: {
        Locale.IT: (
            "Hai raggiunto il limite di messaggi. "
            "Per continuare, compila il form di contatto."
        ),
        Locale.EN: "Message limit reached. Please use the contact form to continue.",
    },
    ChatBlockReason.TOO_LONG: {
        Locale.IT: "Il messaggio è troppo lungo. Prova con un messaggio più breve.",
        Locale.EN: "Message is too long. Please try a shorter message.",
    },
    ChatBlockReason.INJECTION_DETECTED: {
        Locale.IT: "Non ho capito la domanda. Puoi riformularla?",
        Locale.EN: "I didn't understand the question. Could you rephrase it?",
    },
    ChatBlockReason.BLOCKED_CONTENT: {
        Locale.IT: "Non posso rispondere a questa domanda. Posso aiutarti con altro?",
        Locale.EN: "I can't answer this question. Can I help you with something else?",
    },
    ChatBlockReason.EMPTY_INPUT: {
        Locale.IT: "Per favore, scrivi un messaggio.",
        Locale.EN: "Please enter a message.",
    },
    ChatBlockReason.HIGH_RISK: {
        Locale.IT: "La tua richiesta non può essere elaborata. Prova a riformularla.",
        Locale.EN: "Your request cannot be processed. Please try rephrasing.",
    },
}

CHAT_FALLBACK_REPLY: dict[Locale, str] = {
    Locale.IT: (
        "Mi scusi, non sono riuscito a elaborare una risposta appropriata. "
        "Posso aiutarti in altro modo?"
    ),
    Locale.EN: (
        "I apologize, I couldn't generate an appropriate response. "
        "Can I help you with something else?"
    ),
}

_incomplete_chat_copy = [
    reason.code
    for reason in ChatBlockReason
    if set(CHAT_BLOCK_COPY.get(reason, {})) != set(Locale)
]
if _incomplete_chat_copy or set(CHAT_FALLBACK_REPLY) != set(Locale):
    raise RuntimeError(
        f"Chat copy is missing locales for: {_incomplete_chat_copy or ['fallback']}"
    )


def get_chat_block_message(reason: ChatBlockReason, locale: Locale) -> str:
    """Get the visitor-facing message for a refused chat message."""
    return CHAT_BLOCK_COPY[reason][locale]


def get_chat_fallback_reply(locale: Locale) -> str:
    """Get the reply shown when the model's answer is discarded."""
    return CHAT_FALLBACK_REPLY[locale]


# Messages emitted before the request locale is known are fixed Italian.
RATE_LIMITED_MESSAGE = "Troppi tentativi. Riprova tra qualche minuto."
MALFORMED_REQUEST_MESSAGE = "Richiesta non valida."

# The chat widget is answered in English for these
CHAT_MALFORMED_REQUEST_MESSAGE = "Invalid request body"
SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable"
