"""Centralized settings and configuration loading utilities."""

from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RangePolicy(str, Enum):
    clamp = "clamp"
    reject = "reject"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    log_dir: str = "./logs"
    max_log_file_size_mb: int = 100
    backup_count: int = 7


class MonitoringSettings(BaseModel):
    prometheus_port: int = 9093


class StorageSettings(BaseModel):
    endpoint: str = "https://s3.amazonaws.com"
    region: Optional[str] = "us-east-1"
    access_key: str = "access_key"
    secret_key: str = "secret_key"
    bucket: str = "splice-media"
    secure: Optional[bool] = None
    key_prefix: str = "splice"
    public_base_url: Optional[str] = None
    create_bucket: bool = False


class RendererSettings(BaseModel):
    base_url: str = "https://api.shotstack.io/stage"
    api_key: str = ""
    api_key_header: str = "x-api-key"
    timeout_sec: float = 30.0


class ProcessingSettings(BaseModel):
    tmp_dir: str = "./tmp"
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    video_options: list[str] = Field(
        default_factory=lambda: [
            "-c:v",
            "libx264",
            "-preset",
            "veryfast",
            "-movflags",
            "+faststart",
            "-pix_fmt",
            "yuv420p",
            "-profile:v",
            "main",
            "-c:a",
            "aac",
            "-b:a",
            "128k",
            "-shortest",
        ]
    )
    audio_bitrate: str = "128k"
    separate_audio_track: bool = False
    end_before_start: RangePolicy = RangePolicy.clamp
    min_clip_seconds: float = Field(0.1, gt=0)
    min_remaining_seconds: float = Field(1.0, gt=0)


class PollingSettings(BaseModel):
    max_attempts: int = Field(30, ge=1)
    delay_seconds: float = Field(2.0, ge=0)


class ReconcileSettings(BaseModel):
    enabled: bool = False


class CeleryQueueSettings(BaseModel):
    broker_url: str = "redis://localhost:6379/0"
    result_backend: str = "redis://localhost:6379/1"
    default_queue: str = "splice"
    task_time_limit_sec: int = 300


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SPLICE_", env_nested_delimiter="__", extra="allow")

    service_name: str = "video-splice-service"
    environment: str = "dev"
    api_version: str = "v1"
    base_url: str = "/api/v1"

    logging: LoggingSettings = LoggingSettings()
    monitoring: MonitoringSettings = MonitoringSettings()
    storage: StorageSettings = StorageSettings()
    renderer: RendererSettings = RendererSettings()
    processing: ProcessingSettings = ProcessingSettings()
    polling: PollingSettings = PollingSettings()
    reconcile: ReconcileSettings = ReconcileSettings()
    celery: CeleryQueueSettings = CeleryQueueSettings()

    @staticmethod
    def load_yaml_config_file(file_path: str | Path | None) -> Dict[str, Any]:
        if not file_path:
            return {}
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        import yaml  # lazy import for optional dependency

        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration YAML must produce a mapping")
        return data

    @classmethod
    def from_source(cls, *, config_file: str | None = None, **overrides: Any) -> "Settings":
        base_data = cls.load_yaml_config_file(config_file)
        base_data.update(overrides)
        return cls(**base_data)


@lru_cache
def get_settings() -> Settings:
    cfg_file = os.getenv("SPLICE_CONFIG_FILE")
    if cfg_file:
        return Settings.from_source(config_file=cfg_file)

    default_path = Path.cwd() / "config" / "settings.yaml"
    if default_path.exists():
        return Settings.from_source(config_file=str(default_path))

    return Settings()


def reload_settings() -> None:
    get_settings.cache_clear()


def settings_dependency() -> Settings:
    return get_settings()
