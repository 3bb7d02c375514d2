from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 30.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    point_value: Decimal = Decimal("1")
    default_tax_rate: Decimal = Decimal("16")

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout_seconds, self.read_timeout_seconds)


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _positive(value: float | Decimal) -> bool:
    return value > 0


def _finite_decimal(raw: str) -> Decimal:
    value = Decimal(raw.strip())
    if not value.is_finite():
        raise ValueError(raw)
    return value


def _setting(
    name: str,
    default: str,
    parse: Callable[[str], T],
    *,
    kind: str,
    accept: Callable[[T], bool],
    bound: str,
) -> T:
    raw = os.getenv(name, default)
    try:
        value = parse(raw)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected {kind}, got {raw!r}") from exc
    if not accept(value):
        raise ConfigError(f"Invalid {name}: expected {bound}, got {value}")
    return value


def _base_url(env_name: str) -> str:
    for key in (f"POS_API_BASE_URL_{env_name.upper()}", "POS_API_BASE_URL"):
        value = (os.getenv(key) or "").strip()
        if value:
            return value.rstrip("/")
    raise ConfigError("Missing required config values: POS_API_BASE_URL")


def load_config(env_file: str | None = None) -> ClientConfig:
    """Read the POS_* environment, after applying an optional .env file.

    ``POS_ENV`` picks a profile; ``POS_API_BASE_URL_<PROFILE>`` wins over the
    plain ``POS_API_BASE_URL``. Timeouts not given individually derive from
    ``POS_TIMEOUT_SECONDS``.
    """
    load_dotenv(env_file)
    env_name = (os.getenv("POS_ENV") or "dev").strip()

    overall = _setting("POS_TIMEOUT_SECONDS", "30", float, kind="a number", accept=_positive, bound="> 0")
    connect = _setting(
        "POS_CONNECT_TIMEOUT_SECONDS",
        str(min(overall, 5.0)),
        float,
        kind="a number",
        accept=_positive,
        bound="> 0",
    )
    read = _setting(
        "POS_READ_TIMEOUT_SECONDS",
        str(max(overall, connect)),
        float,
        kind="a number",
        accept=_positive,
        bound="> 0",
    )

    return ClientConfig(
        env_name=env_name,
        api_base_url=_base_url(env_name),
        connect_timeout_seconds=connect,
        read_timeout_seconds=read,
        retries=_setting(
            "POS_RETRIES", "2", int, kind="an integer", accept=lambda v: v >= 0, bound=">= 0"
        ),
        retry_backoff_seconds=_setting(
            "POS_RETRY_BACKOFF_SECONDS", "0.3", float, kind="a number", accept=lambda v: v >= 0, bound=">= 0"
        ),
        max_connections=_setting(
            "POS_MAX_CONNECTIONS", "10", int, kind="an integer", accept=lambda v: v >= 1, bound=">= 1"
        ),
        verify_ssl=env_flag("POS_VERIFY_SSL", default=True),
        point_value=_setting(
            "POS_POINT_VALUE", "1", _finite_decimal, kind="a decimal", accept=_positive, bound="> 0"
        ),
        default_tax_rate=_setting(
            "POS_DEFAULT_TAX_RATE",
            "16",
            _finite_decimal,
            kind="a decimal",
            accept=lambda v: 0 <= v <= 100,
            bound="0..100",
        ),
    )
