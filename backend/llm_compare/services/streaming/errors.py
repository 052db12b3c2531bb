"""
Provider error normalization.

Turns whatever an SDK raised into a short, safe message for the UI and a
detailed one for the server log.
"""
import re
from dataclasses import dataclass
from typing import Any, Optional

URL_PATTERN = re.compile(r"https?://\S+")
MAX_USER_MESSAGE_LENGTH = 200

PROVIDER_NAMES = {
    "openai": "OpenAI",
    "google": "Gemini",
}


@dataclass(frozen=True)
class NormalizedError:
    """
    Provider failure split by audience.

    Attributes:
        user_message: Short text for the UI, no URLs or stack traces
        log_message: Detailed text for server logs
    """

    user_message: str
    log_message: str
    status: Optional[int] = None
    code: Optional[str] = None


def _dig(obj: Any, *path: str) -> Any:
    """Follow attributes or mapping keys, returning None on any miss."""
    for name in path:
        if obj is None:
            return None
        if isinstance(obj, dict):
            obj = obj.get(name)
        else:
            obj = getattr(obj, name, None)
    return obj


def _extract_status(err: BaseException) -> Optional[int]:
    for path in (("status_code",), ("status",), ("response", "status_code")):
        value = _dig(err, *path)
        if isinstance(value, int):
            return value
    return None


def _extract_code(err: BaseException) -> Optional[str]:
    for path in (("code",), ("body", "error", "code"), ("error", "code")):
        value = _dig(err, *path)
        if value is not None:
            return str(value)
    return None


def _extract_message(err: BaseException) -> str:
    for path in (("message",), ("body", "error", "message"), ("error", "message")):
        value = _dig(err, *path)
        if isinstance(value, str) and value:
            return value
    return str(err)


def normalize_provider_error(err: BaseException, provider: str) -> NormalizedError:
    """
    Map a provider exception to user and log messages.

    Known HTTP status classes get fixed messages; anything else falls back
    to the raw message with URLs stripped and length capped.
    """
    name = PROVIDER_NAMES.get(provider, provider)
    status = _extract_status(err)
    code = _extract_code(err)
    raw_message = _extract_message(err)
    trimmed = URL_PATTERN.sub("", raw_message).strip()[:MAX_USER_MESSAGE_LENGTH]

    if status == 401:
        user_message = f"{name}: Invalid or missing API key. Check your key in the backend .env."
    elif status == 429:
        user_message = f"{name}: Rate limit or quota exceeded. Please try again later."
    elif status == 400:
        user_message = f"{name}: Bad request. Try simplifying or shortening the prompt."
    elif status is not None and status >= 500:
        user_message = f"{name}: Service is temporarily unavailable. Please retry shortly."
    elif trimmed:
        user_message = f"{name}: {trimmed}"
    else:
        user_message = f"{name}: Something went wrong. Please try again."

    log_message = (
        f"{name} error (status={status if status is not None else 'n/a'} "
        f"code={code or 'n/a'}): {raw_message}"
    )

    return NormalizedError(
        user_message=user_message,
        log_message=log_message,
        status=status,
        code=code,
    )
