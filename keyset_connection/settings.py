"""Keyset pagination settings.

Centralizes the defaults that are independent of any single request: the
unique tie-break column, null coalescing values, and cursor integrity options.

Environment variables use the KEYSET_ prefix.
Example: KEYSET_UNIQUE_COLUMN=id, KEYSET_NULL_COALESCE='{"last_name": ""}'
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class KeysetSettings(BaseSettings):
    """Keyset pagination configuration settings.

    Attributes:
        unique_column: Column appended as the final ascending sort when absent.
        null_coalesce: Substitute values for NULL, per sort column.
        cursor_digest_size: Bytes of digest prepended to every cursor payload.
        cursor_secret: Optional key turning the cursor digest into an HMAC.
        max_page_size: Upper bound for ``first``/``last`` (unbounded when unset).

    Example:
        settings = KeysetSettings(unique_column="id")
        config = ConnectionConfig.from_settings(settings)
    """

    unique_column: str | None = Field(
        default=None,
        min_length=1,
        description="Unique column used as the final tie-break",
    )
    null_coalesce: dict[str, Any] = Field(
        default_factory=dict,
        description="Substitute values for NULL sort column values",
    )
    cursor_digest_size: int = Field(
        default=2,
        ge=1,
        le=20,
        description="Length in bytes of the cursor integrity digest",
    )
    cursor_secret: SecretStr | None = Field(
        default=None,
        description="Secret used to key the cursor digest (HMAC-SHA1)",
    )
    max_page_size: int | None = Field(
        default=None,
        ge=1,
        description="Maximum allowed value of first/last",
    )

    model_config = SettingsConfigDict(
        env_prefix="KEYSET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @field_validator("null_coalesce")
    @classmethod
    def _drop_unset_coalesce_values(cls, value: dict[str, Any]) -> dict[str, Any]:
        # None means "no coalescing" for that column
        return {column: default for column, default in value.items() if default is not None}


@lru_cache(maxsize=1)
def get_keyset_settings() -> KeysetSettings:
    """Get cached keyset pagination settings.

    Returns:
        Validated and frozen KeysetSettings instance.
    """
    return KeysetSettings()


__all__ = ["KeysetSettings", "get_keyset_settings"]
