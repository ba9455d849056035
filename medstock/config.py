# medstock/config.py
from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

from medstock.domain.models import Actor, ActorRegistry

logger = logging.getLogger("medstock.config")

ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_ACTORS: Dict[str, Any] = {
    "main": "user_main",
    "authorized": ["user_authorized_1"],
    "actors": [
        {"id": "user_main", "name": "Usuário Principal"},
        {"id": "user_authorized_1", "name": "Usuário Autorizado"},
        {"id": "user_unauthorized_1", "name": "Usuário Não Autorizado"},
    ],
}


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    app_version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "0.1.0"))
    share_base_url: str = field(default_factory=lambda: os.getenv("SHARE_BASE_URL", "http://localhost:8000/import"))
    share_compress: bool = field(default_factory=lambda: _flag("SHARE_COMPRESS", "1"))
    import_ttl_seconds: int = field(default_factory=lambda: int(os.getenv("IMPORT_TTL_SECONDS", "3600")))
    actors_file: Path = field(default_factory=lambda: Path(os.getenv("ACTORS_FILE", ROOT_DIR / "config" / "actors.yaml")))
    cors_allow_origins: List[str] = field(default_factory=lambda: [
        o.strip().rstrip("/") for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
    ])


@lru_cache
def get_settings() -> Settings:
    return Settings()


def registry_from_dict(raw: Dict[str, Any]) -> ActorRegistry:
    return ActorRegistry(
        main_id=raw["main"],
        authorized_ids=list(raw.get("authorized") or []),
        actors=[Actor(**a) for a in raw.get("actors") or []],
    )


def load_actor_registry(path: Path | None = None) -> ActorRegistry:
    """Registry dari YAML; file tidak ada -> registry default (main/authorized/unauthorized)."""
    path = Path(path or get_settings().actors_file)
    if not path.exists():
        logger.warning("actors file %s not found; using default registry", path)
        return registry_from_dict(DEFAULT_ACTORS)
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    try:
        return registry_from_dict(raw)
    except (KeyError, TypeError) as e:
        raise ValueError(f"invalid actors file {path}: {e}") from e
