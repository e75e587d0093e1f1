"""Request body decoding for the JSON API."""
from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import Request


class BodyDecodeError(ValueError):
    """The request carried a body that is not a JSON object."""


def decode_body(raw: bytes) -> Dict[str, Any]:
    """Parse a fully buffered payload into a mapping.

    An empty payload decodes to an empty mapping so field validation can
    report the missing values. Anything else must be a JSON object.
    """

    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise BodyDecodeError(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise BodyDecodeError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


async def read_json_body(request: Request) -> Dict[str, Any]:
    return decode_body(await request.body())


__all__ = ["BodyDecodeError", "decode_body", "read_json_body"]
