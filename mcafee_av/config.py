"""Runtime configuration read from ``MALICE_*`` environment variables."""

from __future__ import annotations

import hashlib
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MALICE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Result sinks
    elasticsearch_url: str = ""
    endpoint: str = ""
    proxy: str = ""
    scanid: str = ""

    # Deadlines, in seconds
    timeout: int = 120
    web_timeout: int = 60
    metadata_timeout: int = 30

    # Date the engine image was built, used when definitions were never refreshed
    build_time: str = ""

    daemon_start_cmd: list[str] = Field(default_factory=lambda: ["/etc/init.d/mcafee", "start"])
    scan_cmd: list[str] = Field(default_factory=lambda: ["scan", "-abfu"])
    engine_binary: str = "/bin/scan"
    update_cmd: list[str] = Field(
        default_factory=lambda: ["/var/lib/mcafee/Setup/mcafee.vpsupdate"]
    )

    updated_file: Path = Path("/opt/malice/UPDATED")
    license_file: Path = Path("/etc/mcafee/license.mcafeelic")
    upload_dir: Path = Path("/malware")

    web_host: str = "0.0.0.0"
    web_port: int = 3993

    def scan_id_for(self, path: Path | str) -> str:
        """Correlation id for a scan: ``MALICE_SCANID`` or the file's SHA-256."""
        if self.scanid:
            return self.scanid
        return file_sha256(path)


def file_sha256(path: Path | str) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(64 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


@lru_cache
def get_settings() -> Settings:
    return Settings()
