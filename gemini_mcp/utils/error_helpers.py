from __future__ import annotations

_SETUP_TIP = " Tip: Check that GEMINI_API_KEY is valid and that the Gemini API is enabled for its project."
_VERTEX_TIP = " Tip: Imagen upscale/edit require Vertex AI; set VERTEX_PROJECT, VERTEX_LOCATION and VERTEX_CREDENTIALS_PATH."


def _looks_like_vertex_only_issue(text: str) -> bool:
    lower = text.lower()
    return "vertex" in lower and ("only supported" in lower or "not supported" in lower)


def _looks_like_auth_issue(text: str) -> bool:
    """Best-effort detection for auth/quota issues from upstream errors."""
    lower = text.lower()

    keywords = [
        # auth/credentials
        "api key",
        "api_key_invalid",
        "apikey",
        "unauthenticated",
        "unauthorized",
        "permission_denied",
        "permission denied",
        "forbidden",
        "credentials",
        "401",
        "403",
        # billing/quota
        "billing",
        "quota",
        "resource_exhausted",
    ]

    return any(k in lower for k in keywords)


def augment_with_setup_tip(message: str) -> str:
    """Append a configuration tip to an upstream error message when it looks relevant.

    Never duplicates a tip already present.
    """
    if not message:
        return message
    if _SETUP_TIP.strip() in message or _VERTEX_TIP.strip() in message:
        return message
    if _looks_like_vertex_only_issue(message):
        return message.rstrip() + _VERTEX_TIP
    if _looks_like_auth_issue(message):
        return message.rstrip() + _SETUP_TIP
    return message


def format_validation_error(exc: Exception) -> str:
    """Turn a pydantic ValidationError into one line naming each offending field."""
    errors = getattr(exc, "errors", None)
    if not callable(errors):
        return str(exc)
    parts: list[str] = []
    for err in errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"'{loc}': {err.get('msg', 'invalid value')}")
    return "Invalid argument " + "; ".join(parts) if parts else str(exc)


__all__ = [
    "augment_with_setup_tip",
    "format_validation_error",
]
