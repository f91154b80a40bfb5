from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import yaml


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str_first(names: tuple[str, ...], default: str) -> str:
    for name in names:
        v = os.getenv(name)
        if v is None or v == "":
            continue
        return v
    return default


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None else v


@dataclass(frozen=True)
class StoreConfig:
    """Connection parameters handed to the document store."""

    endpoint: str = "http://127.0.0.1:9200"
    credentials: Optional[Tuple[str, str]] = None
    max_retries: int = 5
    timeout_s: float = 30.0


@dataclass
class Settings:
    # Elasticsearch
    endpoint: str = "http://127.0.0.1:9200"
    username: str = ""
    password: str = ""
    max_retries: int = 5
    timeout_s: int = 30

    # Publishing
    workers: int = 5
    index_name: str = "elasticbook"
    alias_name: str = "elasticbookdefault"
    doc_type: str = "_doc"

    # Input; empty means the platform's Chrome profile
    bookmarks_path: str = ""

    # Logging / UX
    log_level: str = "INFO"
    no_color: bool = False

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        # Compat: BONSAIO_* came from the hosted-cluster setup; ELASTICBOOK_ variants win.
        s.endpoint = _env_str_first(("ELASTICBOOK_URL", "BONSAIO_HOST"), s.endpoint)
        s.username = _env_str_first(("ELASTICBOOK_USERNAME", "BONSAIO_KEY"), s.username)
        s.password = _env_str_first(("ELASTICBOOK_PASSWORD", "BONSAIO_SECRET"), s.password)
        s.max_retries = _env_int("ELASTICBOOK_MAX_RETRIES", s.max_retries)
        s.timeout_s = _env_int("ELASTICBOOK_TIMEOUT_S", s.timeout_s)

        s.workers = _env_int("ELASTICBOOK_WORKERS", s.workers)
        s.index_name = _env_str("ELASTICBOOK_INDEX", s.index_name)
        s.alias_name = _env_str("ELASTICBOOK_ALIAS", s.alias_name)
        s.doc_type = _env_str("ELASTICBOOK_DOC_TYPE", s.doc_type)

        s.bookmarks_path = _env_str("ELASTICBOOK_BOOKMARKS", s.bookmarks_path)

        s.log_level = _env_str("ELASTICBOOK_LOG_LEVEL", s.log_level)
        s.no_color = _env_bool("ELASTICBOOK_NO_COLOR", s.no_color)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        s = Settings.from_env()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)
        return s

    def credentials(self) -> Optional[Tuple[str, str]]:
        if not self.username:
            return None
        return (self.username, self.password)

    def store_config(self) -> StoreConfig:
        endpoint = self.endpoint
        if "://" not in endpoint:
            # Hosted clusters are usually given as a bare host.
            endpoint = f"https://{endpoint}"
        return StoreConfig(
            endpoint=endpoint.rstrip("/"),
            credentials=self.credentials(),
            max_retries=max(0, int(self.max_retries)),
            timeout_s=float(self.timeout_s),
        )


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_file(Path(config_path))
    return Settings.from_env()
