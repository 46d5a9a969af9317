"""
Pagination helpers shared by the conversation and message views.
"""
import base64
import binascii
import json
import math
from datetime import datetime
from typing import NamedTuple

from messaging.core.exceptions import InvalidArgument
from messaging.schemas.message import Pagination


# Largest value SQL backends accept as a 64-bit integer bind
MAX_SQL_INTEGER = 2 ** 63 - 1


class Cursor(NamedTuple):
    """Position of the last row of a page: its created_at and insertion seq."""
    created_at: datetime
    seq: int


def validate_page(page: int, page_size: int, max_page_size: int) -> None:
    if page < 1:
        raise InvalidArgument("page must be >= 1", {"page": page})
    if page_size < 1 or page_size > max_page_size:
        raise InvalidArgument(
            f"limit must be between 1 and {max_page_size}",
            {"limit": page_size},
        )
    if (page - 1) * page_size > MAX_SQL_INTEGER:
        raise InvalidArgument("page is out of range", {"page": page})


def build_pagination(total: int, page: int, page_size: int) -> Pagination:
    return Pagination(
        total=total,
        page=page,
        limit=page_size,
        pages=math.ceil(total / page_size) if total else 0,
    )


def encode_cursor(cursor: Cursor) -> str:
    payload = json.dumps({"t": cursor.created_at.isoformat(), "s": cursor.seq})
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> Cursor:
    """Parse an opaque cursor token; malformed tokens are an InvalidArgument."""
    padded = token + "=" * (-len(token) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        created_at, seq = data["t"], data["s"]
        if not isinstance(created_at, str) or isinstance(seq, bool) or not isinstance(seq, int):
            raise ValueError("cursor fields have the wrong type")
        if not 0 <= seq <= MAX_SQL_INTEGER:
            raise ValueError("cursor seq is out of range")
        return Cursor(datetime.fromisoformat(created_at), seq)
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise InvalidArgument("cursor is malformed", {"cursor": token}) from e
