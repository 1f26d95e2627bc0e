"""Cursor encoding and decoding for keyset pagination.

A cursor is an opaque string holding the sort column values of one record,
in sort order. The next query uses those values to seek past the record.

The default format (:class:`Base64HashedCodec`) is:

    base64( digest[:2] + "🔑" + json_array )

Example for a cursor over ``["name", "id"]``:

    ["Mo",26]  ->  eo7wn5SRWyJNbyIsMjZd

The digest is not encryption. It makes cursors easy to tell apart and catches
casual tampering. Column names never appear in the cursor; decoded values are
zipped with the columns the current query expects, so a cursor minted under a
different sort spec is rejected by its value count.

Values JSON cannot represent natively are tagged so they decode to the same
type:

    {"$type": "datetime", "value": "2025-01-15T10:30:00+00:00"}
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import math
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from keyset_connection.exceptions import InvalidCursor
from keyset_connection.log import get_lazy_logger
from keyset_connection.records import record_value

logger = get_lazy_logger(__name__)

CURSOR_MARKER = "🔑".encode()
TYPE_TAG = "$type"
VALUE_TAG = "value"

_ENCODERS: tuple[tuple[type, str, Callable[[Any], str]], ...] = (
    # datetime before date: datetime is a date subclass
    (datetime, "datetime", datetime.isoformat),
    (date, "date", date.isoformat),
    (time, "time", time.isoformat),
    (Decimal, "decimal", str),
    (UUID, "uuid", str),
)

_DECODERS: dict[str, Callable[[str], Any]] = {
    "datetime": datetime.fromisoformat,
    "date": date.fromisoformat,
    "time": time.fromisoformat,
    "decimal": Decimal,
    "uuid": UUID,
}


@runtime_checkable
class CursorCodec(Protocol):
    """Strategy for turning a cursor key into an opaque string and back.

    Implementations must raise :class:`InvalidCursor` (or ``ValueError``) from
    ``decode`` for anything they did not produce themselves.
    """

    def encode(self, key: Mapping[str, Any], columns: Sequence[str]) -> str: ...

    def decode(self, cursor: str, columns: Sequence[str]) -> dict[str, Any]: ...


class _CursorFormatError(ValueError):
    """Internal decode failure; never leaves this module."""


def serialize_value(value: Any) -> Any:
    """Convert one cursor value to its JSON form.

    Raises:
        TypeError: For values that cannot be represented exactly.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"Cannot encode non-finite float {value!r} in a cursor")
        return value
    for kind, tag, encoder in _ENCODERS:
        if isinstance(value, kind):
            return {TYPE_TAG: tag, VALUE_TAG: encoder(value)}
    raise TypeError(f"Cannot encode value of type {type(value).__name__} in a cursor")


def deserialize_value(raw: Any) -> Any:
    """Inverse of :func:`serialize_value`; rejects anything it did not emit."""
    if raw is None or isinstance(raw, (str, bool, int, float)):
        return raw
    if isinstance(raw, dict) and raw.keys() == {TYPE_TAG, VALUE_TAG}:
        decoder = _DECODERS.get(raw[TYPE_TAG]) if isinstance(raw[TYPE_TAG], str) else None
        if decoder is not None and isinstance(raw[VALUE_TAG], str):
            try:
                return decoder(raw[VALUE_TAG])
            except (ValueError, InvalidOperation) as exc:
                raise _CursorFormatError(f"bad {raw[TYPE_TAG]} value") from exc
    raise _CursorFormatError("unsupported value in payload")


class Base64HashedCodec:
    """Tamper-resistant (not tamper-proof) cursor codec.

    Args:
        digest_size: Bytes of the SHA-1 digest kept in front of the payload.
        secret: Optional key; when set the digest is an HMAC-SHA1 so cursors
            cannot be forged without it.

    Example:
        codec = Base64HashedCodec()
        cursor = codec.encode({"id": 25}, ["id"])   # "Tr7wn5SRWzI1XQ=="
        codec.decode(cursor, ["id"])                # {"id": 25}
    """

    def __init__(self, digest_size: int = 2, secret: str | bytes | None = None) -> None:
        if not 1 <= digest_size <= hashlib.sha1().digest_size:
            raise ValueError("digest_size must be between 1 and 20")
        self.digest_size = digest_size
        self._secret = secret.encode() if isinstance(secret, str) else secret

    def _digest(self, payload: bytes) -> bytes:
        if self._secret:
            full = hmac.new(self._secret, payload, hashlib.sha1).digest()
        else:
            full = hashlib.sha1(payload).digest()
        return full[: self.digest_size]

    def encode(self, key: Mapping[str, Any], columns: Sequence[str]) -> str:
        """Encode the values of ``columns`` from ``key`` into a cursor."""
        values = [serialize_value(key[column]) for column in columns]
        payload = json.dumps(
            values,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
        return base64.b64encode(self._digest(payload) + CURSOR_MARKER + payload).decode("ascii")

    def decode(self, cursor: str, columns: Sequence[str]) -> dict[str, Any]:
        """Decode a cursor into a key over ``columns``.

        Raises:
            InvalidCursor: If the cursor is malformed, tampered with or was
                minted for a different set of columns.
        """
        try:
            values = self._decode_values(cursor)
            if len(values) != len(columns):
                raise _CursorFormatError(f"expected {len(columns)} values, got {len(values)}")
            return dict(zip(columns, values, strict=True))
        except (ValueError, TypeError, RecursionError) as exc:
            # json/base64/unicode errors are all ValueError subclasses
            logger.debug("Rejected cursor: %s", lambda: exc)
            raise InvalidCursor() from None

    def _decode_values(self, cursor: str) -> list[Any]:
        if not isinstance(cursor, str):
            raise _CursorFormatError("cursor must be a string")
        try:
            raw = base64.b64decode(cursor.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise _CursorFormatError("not base64") from exc

        prefix_size = self.digest_size + len(CURSOR_MARKER)
        digest = raw[: self.digest_size]
        marker = raw[self.digest_size : prefix_size]
        payload = raw[prefix_size:]
        if marker != CURSOR_MARKER or not payload:
            raise _CursorFormatError("missing marker")
        if not hmac.compare_digest(digest, self._digest(payload)):
            raise _CursorFormatError("digest mismatch")

        decoded = json.loads(payload.decode("utf-8"), parse_constant=_reject_constant)
        if not isinstance(decoded, list):
            raise _CursorFormatError("payload is not an array")
        return [deserialize_value(item) for item in decoded]


def _reject_constant(name: str) -> Any:
    raise _CursorFormatError(f"non-finite number {name}")


_default_codec = Base64HashedCodec()


def cursor_key(
    record: Any,
    columns: Sequence[str],
    null_coalesce: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Extract a record's cursor key, substituting coalesce values for NULL."""
    null_coalesce = null_coalesce or {}
    key = {}
    for column in columns:
        value = record_value(record, column)
        if value is None:
            value = null_coalesce.get(column)
        key[column] = value
    return key


def encode_cursor(
    key: Mapping[str, Any],
    columns: Sequence[str],
    null_coalesce: Mapping[str, Any] | None = None,
    codec: CursorCodec | None = None,
) -> str:
    """Encode a key, coalescing NULL values first."""
    null_coalesce = null_coalesce or {}
    coalesced = {
        column: null_coalesce.get(column) if key[column] is None else key[column]
        for column in columns
    }
    return (codec or _default_codec).encode(coalesced, columns)


def decode_cursor(
    cursor: str,
    columns: Sequence[str],
    null_coalesce: Mapping[str, Any] | None = None,
    codec: CursorCodec | None = None,
) -> dict[str, Any]:
    """Decode a cursor with any codec, normalizing failures to InvalidCursor.

    Raises:
        InvalidCursor: If the codec rejects the cursor or returns a key
            that does not cover exactly ``columns``.
    """
    try:
        key = (codec or _default_codec).decode(cursor, columns)
    except InvalidCursor:
        raise
    except (ValueError, TypeError, KeyError) as exc:
        logger.debug("Cursor codec rejected cursor: %s", lambda: exc)
        raise InvalidCursor() from None

    if not isinstance(key, Mapping) or set(key) != set(columns):
        raise InvalidCursor()

    null_coalesce = null_coalesce or {}
    return {
        column: null_coalesce.get(column) if key[column] is None else key[column]
        for column in columns
    }


__all__ = [
    "Base64HashedCodec",
    "CursorCodec",
    "cursor_key",
    "decode_cursor",
    "deserialize_value",
    "encode_cursor",
    "serialize_value",
]
