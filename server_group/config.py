"""Runtime configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
import math
import os
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

DEFAULT_GROUP_BUNDLES = "node:group"


@dataclass(frozen=True)
class Settings:
    """Configuration for the group site."""

    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    db_connect_timeout: int
    jwt_secret_key: str
    jwt_algorithm: str
    jwt_exp_minutes: int
    session_cookie_name: str
    session_cookie_secure: bool
    app_base_url: str
    group_bundles: FrozenSet[Tuple[str, str]]
    default_language: str
    log_level: str

    @property
    def db_config(self) -> Dict[str, Any]:
        return dict(
            host=self.db_host,
            port=self.db_port,
            dbname=self.db_name,
            user=self.db_user,
            password=self.db_password,
            connect_timeout=self.db_connect_timeout,
        )


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _parse_connect_timeout(raw_value: Optional[str]) -> int:
    if raw_value is None or raw_value == "":
        return 5
    try:
        timeout = float(raw_value)
    except ValueError as exc:
        raise ValueError("DB_CONNECT_TIMEOUT must be a number") from exc
    if timeout < 0:
        raise ValueError("DB_CONNECT_TIMEOUT must be non-negative")
    return int(math.ceil(timeout))


def parse_group_bundles(raw_value: Optional[str]) -> FrozenSet[Tuple[str, str]]:
    """Parse ``entity_type:bundle`` pairs separated by commas."""

    pairs = set()
    for item in (raw_value or DEFAULT_GROUP_BUNDLES).split(","):
        item = item.strip()
        if not item:
            continue
        entity_type, sep, bundle = item.partition(":")
        if not sep or not entity_type.strip() or not bundle.strip():
            raise ValueError(f"GROUP_BUNDLES entries must look like 'entity_type:bundle', got {item!r}")
        pairs.add((entity_type.strip(), bundle.strip()))
    return frozenset(pairs)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Load :class:`Settings` from environment variables."""

    env_mapping = os.environ if env is None else env

    return Settings(
        db_host=env_mapping.get("DB_HOST", "127.0.0.1"),
        db_port=_to_int(env_mapping.get("DB_PORT"), default=5432),
        db_name=env_mapping.get("DB_NAME", "group_site"),
        db_user=env_mapping.get("DB_USER", "group_user"),
        db_password=env_mapping.get("DB_PASSWORD", "group_pass"),
        db_connect_timeout=_parse_connect_timeout(env_mapping.get("DB_CONNECT_TIMEOUT")),
        jwt_secret_key=env_mapping.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        jwt_algorithm="HS256",
        # default: 7 days
        jwt_exp_minutes=max(1, _to_int(env_mapping.get("JWT_EXP_MINUTES"), default=60 * 24 * 7)),
        session_cookie_name=env_mapping.get("SESSION_COOKIE_NAME", "session"),
        session_cookie_secure=_to_bool(env_mapping.get("SESSION_COOKIE_SECURE"), default=False),
        app_base_url=env_mapping.get("APP_BASE_URL", "http://localhost:8000").rstrip("/"),
        group_bundles=parse_group_bundles(env_mapping.get("GROUP_BUNDLES")),
        default_language=(env_mapping.get("DEFAULT_LANGUAGE") or "en").strip().lower() or "en",
        log_level=(env_mapping.get("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
    )
