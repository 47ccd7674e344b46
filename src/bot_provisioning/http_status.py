"""HTTP status classification shared by every remote step and the poller."""

from __future__ import annotations

from enum import Enum
from typing import Any

OK_OR_CREATED_CODES = frozenset({200, 201})
ACCEPTED_CODE = 202


class HttpStatusClass(str, Enum):
    OK_OR_CREATED = 'ok_or_created'
    ACCEPTED = 'accepted'
    OTHER = 'other'


def classify_status(status_code: int | None) -> HttpStatusClass:
    """Classify an integer status code.

    ``None`` (absent or unparsable status) is always ``OTHER``; a malformed
    response never counts as success.
    """
    if not isinstance(status_code, int) or isinstance(status_code, bool):
        return HttpStatusClass.OTHER
    if status_code in OK_OR_CREATED_CODES:
        return HttpStatusClass.OK_OR_CREATED
    if status_code == ACCEPTED_CODE:
        return HttpStatusClass.ACCEPTED
    return HttpStatusClass.OTHER


def status_code_of(response: Any) -> int | None:
    """Extract an integer status code from a collaborator response.

    Accepts ``status_code`` or ``status`` attributes and integer-like
    strings. Returns ``None`` when the response is missing or the value
    cannot be read as an integer.
    """
    if response is None:
        return None
    raw = getattr(response, 'status_code', None)
    if raw is None:
        raw = getattr(response, 'status', None)
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


def classify_response(response: Any) -> HttpStatusClass:
    return classify_status(status_code_of(response))
