from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Server
    host: str
    port: int

    # Structural limits
    max_keys_per_object: int
    max_nesting_level: int

    # Uploads
    max_upload_size_mb: int
    normalize_uploads: bool

    # Storage
    data_dir: Path
    seed_demo_data: bool

    # Retention sweep
    cleanup_enabled: bool
    cleanup_interval_seconds: int
    cleanup_max_age_seconds: int

    # Logging
    log_level: str
    log_file: str | None

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


def get_settings() -> Settings:
    host = os.getenv("HOST", "127.0.0.1")
    port = _env_int("PORT", 8080)

    max_keys = _env_int("MAX_KEYS", 10)

    max_upload_size_mb = _env_int("MAX_UPLOAD_SIZE_MB", 1)
    normalize_uploads = _env_bool("NORMALIZE_UPLOADS", True)

    raw_data_dir = os.getenv("DATA_DIR", "").strip()
    data_dir = Path(raw_data_dir) if raw_data_dir else Path(__file__).resolve().parent / "data"
    seed_demo_data = _env_bool("SEED_DEMO_DATA", True)

    # Files older than a day are swept hourly.
    cleanup_enabled = _env_bool("CLEANUP_ENABLED", True)
    cleanup_interval_seconds = _env_int("CLEANUP_INTERVAL_SECONDS", 3600)
    cleanup_max_age_seconds = _env_int("CLEANUP_MAX_AGE_SECONDS", 24 * 3600)

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    log_file = os.getenv("LOG_FILE", "").strip() or None

    return Settings(
        host=host,
        port=port,
        max_keys_per_object=max_keys,
        # Nesting depth is not configurable.
        max_nesting_level=1,
        max_upload_size_mb=max_upload_size_mb,
        normalize_uploads=normalize_uploads,
        data_dir=data_dir,
        seed_demo_data=seed_demo_data,
        cleanup_enabled=cleanup_enabled,
        cleanup_interval_seconds=cleanup_interval_seconds,
        cleanup_max_age_seconds=cleanup_max_age_seconds,
        log_level=log_level,
        log_file=log_file,
    )
