"""
Configuration settings for the static store publisher.

Uses Pydantic Settings to load environment variables for source/output
directories, size thresholds for splitting and large-package redirection,
binary-update packaging, and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    # Source and output trees
    packages_dir: str = Field("packages", alias="STORE_PACKAGES_DIR")
    output_dir: str = Field("dist-publish", alias="STORE_OUTPUT_DIR")
    ui_dist_dir: str = Field("dist", alias="STORE_UI_DIST_DIR")
    ui_catalog_path: str = Field("src/apps.json", alias="STORE_UI_CATALOG_PATH")
    ui_build_command: str = Field("npx vite build", alias="STORE_UI_BUILD_COMMAND")
    verifier_dir: str = Field("verifier", alias="STORE_VERIFIER_DIR")

    # Binary update packaging
    update_source_dir: str = Field("../sandstorm", alias="STORE_UPDATE_SOURCE_DIR")
    update_keyring: Optional[str] = Field(None, alias="STORE_UPDATE_KEYRING")
    update_tool: Optional[str] = Field(None, alias="STORE_UPDATE_TOOL")
    update_tarball_prefix: str = Field("sandstorm", alias="STORE_UPDATE_TARBALL_PREFIX")

    # Publishing
    publish_extra_dirs: List[str] = Field(["update"], alias="STORE_PUBLISH_EXTRA_DIRS")
    max_file_size: int = Field(95 * MIB, alias="STORE_MAX_FILE_SIZE")
    chunk_size: int = Field(90 * MIB, alias="STORE_CHUNK_SIZE")
    suffix_width: int = Field(2, alias="STORE_SUFFIX_WIDTH")
    redirect_threshold: int = Field(95 * MIB, alias="STORE_REDIRECT_THRESHOLD")
    releases_base_url: str = Field(
        "https://github.com/hrbrlife/melusina-static-store/releases/download/packages-v1",
        alias="STORE_RELEASES_BASE_URL",
    )

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.chunk_size >= self.max_file_size:
            raise ValueError(
                f"chunk_size ({self.chunk_size}) must be smaller than "
                f"max_file_size ({self.max_file_size})"
            )
        if self.redirect_threshold > self.max_file_size:
            raise ValueError(
                f"redirect_threshold ({self.redirect_threshold}) must not exceed "
                f"max_file_size ({self.max_file_size})"
            )
        if self.suffix_width < 1:
            raise ValueError("suffix_width must be at least 1")
        return self

    @property
    def update_tarball_pattern(self) -> str:
        """Regex matching binary-update tarballs whose manifest gets split info."""
        return rf"^{self.update_tarball_prefix}-.*\.tar\.xz$"

    @property
    def resolved_update_keyring(self) -> str:
        return self.update_keyring or f"{self.update_source_dir}/keys/melusina-update-keyring"

    @property
    def resolved_update_tool(self) -> str:
        return self.update_tool or f"{self.update_source_dir}/tmp/sandstorm/update-tool"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["MIB", "Settings", "get_settings"]
