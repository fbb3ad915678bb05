"""
Main Settings Configuration

Environment driven settings for the file storage layer. Every field can be
set through a ``FILE_STORAGE_<FIELD>`` environment variable or a ``.env``
file.
"""

import os
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..interfaces.storage_interface import StorageConfig, StorageType


class StorageSettings(BaseSettings):
    """Storage settings."""

    model_config = SettingsConfigDict(
        env_prefix="FILE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development")
    log_level: Optional[str] = Field(default=None)
    log_dir: str = Field(default="logs")

    # Backend selection
    provider: StorageType = Field(default=StorageType.AZURE_FILE)
    root_name: str = Field(default="file-storage")
    ephemeral_root: bool = Field(default=False)

    # Azure Files
    connection_string: Optional[str] = Field(default=None)
    account_url: Optional[str] = Field(default=None)
    account_key: Optional[str] = Field(default=None)

    # Local storage
    local_base_path: Optional[str] = Field(default=None)

    # Behaviour
    timeout: float = Field(default=30, gt=0)
    copy_poll_interval: float = Field(default=0.5, gt=0)
    overwrite_existing: bool = Field(default=True)
    native_rename: bool = Field(default=True)
    create_root_if_missing: bool = Field(default=True)
    spool_max_size: int = Field(default=8 * 1024 * 1024)
    read_chunk_size: int = Field(default=4 * 1024 * 1024)

    def to_storage_config(self, root_name: Optional[str] = None) -> StorageConfig:
        """Build the adapter configuration, optionally for another root."""
        root_name = root_name or self.root_name
        custom_options: Dict[str, Any] = {}
        if self.local_base_path:
            # Each root is its own directory below the base path.
            custom_options["base_path"] = os.path.join(self.local_base_path, root_name)

        return StorageConfig(
            provider=self.provider,
            root_name=root_name,
            connection_string=self.connection_string,
            account_url=self.account_url,
            credential=self.account_key,
            timeout=self.timeout,
            copy_poll_interval=self.copy_poll_interval,
            overwrite_existing=self.overwrite_existing,
            native_rename=self.native_rename,
            create_root_if_missing=self.create_root_if_missing,
            spool_max_size=self.spool_max_size,
            read_chunk_size=self.read_chunk_size,
            custom_options=custom_options or None,
        )


@lru_cache()
def get_settings() -> StorageSettings:
    """Get cached settings instance."""
    return StorageSettings()
