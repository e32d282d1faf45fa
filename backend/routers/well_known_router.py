"""Well-known URIs (RFC 8615)."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from models.config import Settings, get_settings

router = APIRouter(prefix="/.well-known", tags=["well-known"])


def build_security_txt(settings: Settings) -> str:
    """Render the RFC 9116 security.txt body."""
    lines = [
        f"Contact: {settings.SECURITY_CONTACT}",
        f"Expires: {settings.SECURITY_TXT_EXPIRES}",
        f"Preferred-Languages: {settings.SECURITY_TXT_LANGUAGES}",
        f"Canonical: {settings.SITE_URL.rstrip('/')}/.well-known/security.txt",
    ]
    return "\n".join(lines) + "\n"


@router.get("/security.txt", response_class=PlainTextResponse)
def get_security_txt(
    settings: Settings = Depends(get_settings),
) -> PlainTextResponse:
    """Serve security.txt so researchers know where to report vulnerabilities."""
    return PlainTextResponse(
        build_security_txt(settings),
        headers={"Cache-Control": "public, max-age=86400"},
    )
