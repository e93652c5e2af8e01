from __future__ import annotations

import base64
import binascii
import re

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.*)$", re.DOTALL)


def to_data_uri(mime_type: str, payload: bytes) -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    match = DATA_URI_PATTERN.match(uri)
    if not match:
        raise ValueError("Expected a base64 data URI: 'data:<mimetype>;base64,<encoded_data>'")
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise ValueError("Data URI payload is not valid base64") from exc
    return match.group("mime"), payload


def decoded_text(uri: str) -> str | None:
    """Return the text carried by a text/* data URI, or None for binary media."""
    mime_type, payload = parse_data_uri(uri)
    if not mime_type.startswith("text/"):
        return None
    return payload.decode("utf-8", errors="replace")
