"""YAML config loader."""

import os
from dataclasses import dataclass, field

import yaml


@dataclass
class DownloadConfig:
    timeout: int = 30
    connect_timeout: int = 10
    user_agent: str = ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                       "(KHTML, like Gecko) Chrome/124.0 Safari/537.36")
    accept_language: str = "en-US,en;q=0.5"


@dataclass
class ThrottleConfig:
    speed: str = "balanced"
    recovery_pause: float = 10.0
    failure_ratio: float = 0.3


@dataclass
class AppConfig:
    data_dir: str = "downloads"
    log_dir: str = "logs"
    log_level: str = "INFO"
    job_retention: int = 3600
    download: DownloadConfig = field(default_factory=DownloadConfig)
    throttle: ThrottleConfig = field(default_factory=ThrottleConfig)

    @property
    def html_dir(self) -> str:
        return os.path.join(self.data_dir, "html")

    @property
    def bible_dir(self) -> str:
        return os.path.join(self.data_dir, "bible")

    @property
    def json_dir(self) -> str:
        return os.path.join(self.data_dir, "json")


def _pick(cls, raw: dict):
    return cls(**{k: v for k, v in (raw or {}).items() if k in cls.__dataclass_fields__})


def load_config(config_path: str = "config.yaml") -> AppConfig:
    if not os.path.exists(config_path):
        return AppConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return AppConfig(
        data_dir=raw.get("data_dir", "downloads"),
        log_dir=raw.get("log_dir", "logs"),
        log_level=raw.get("log_level", "INFO"),
        job_retention=raw.get("job_retention", 3600),
        download=_pick(DownloadConfig, raw.get("download")),
        throttle=_pick(ThrottleConfig, raw.get("throttle")),
    )
