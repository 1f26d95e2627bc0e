"""Per-call pagination configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from keyset_connection.cursor import Base64HashedCodec, CursorCodec
from keyset_connection.settings import KeysetSettings, get_keyset_settings

if TYPE_CHECKING:
    from keyset_connection.adapters.base import SourceAdapter


@dataclass(frozen=True)
class ConnectionConfig:
    """Options that are independent of the current request.

    Attributes:
        unique_column: Column appended as the final ascending tie-break.
        null_coalesce: Substitute values for NULL, per sort column.
        cursor_codec: Cursor strategy; Base64HashedCodec when None.
        adapter: Source adapter; chosen from the source type when None.
        max_page_size: Upper bound for first/last.

    Example:
        config = ConnectionConfig(unique_column="id", null_coalesce={"last_name": ""})
        connection = paginate(select(User), fetch, {"first": 10}, config)
    """

    unique_column: str | None = None
    null_coalesce: Mapping[str, Any] = field(default_factory=dict)
    cursor_codec: CursorCodec | None = None
    adapter: SourceAdapter | None = None
    max_page_size: int | None = None

    @classmethod
    def from_settings(cls, settings: KeysetSettings | None = None, **overrides: Any) -> ConnectionConfig:
        """Build a config from KEYSET_* settings.

        Args:
            settings: Settings to use; the cached environment settings when None.
            **overrides: Field values taking precedence over the settings.
        """
        settings = settings or get_keyset_settings()
        secret = settings.cursor_secret.get_secret_value() if settings.cursor_secret else None
        values: dict[str, Any] = {
            "unique_column": settings.unique_column,
            "null_coalesce": dict(settings.null_coalesce),
            "cursor_codec": Base64HashedCodec(settings.cursor_digest_size, secret),
            "max_page_size": settings.max_page_size,
        }
        values.update(overrides)
        return cls(**values)


__all__ = ["ConnectionConfig"]
