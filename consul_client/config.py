import logging
import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigError


DEFAULT_HTTP_ADDR = "http://127.0.0.1:8500"
DEFAULT_TIMEOUT_S = 5.0
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    http_addr: str = DEFAULT_HTTP_ADDR
    token: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    log_level: str = DEFAULT_LOG_LEVEL

    def __repr__(self) -> str:
        token = "***" if self.token else None
        return (
            f"Settings(http_addr={self.http_addr!r}, token={token!r}, "
            f"timeout_s={self.timeout_s!r}, log_level={self.log_level!r})"
        )


def normalize_addr(addr: str) -> str:
    addr = addr.strip().rstrip("/")
    if addr and "://" not in addr:
        addr = f"http://{addr}"
    return addr


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    http_addr = normalize_addr(env.get("CONSUL_HTTP_ADDR") or DEFAULT_HTTP_ADDR)

    raw_timeout = env.get("CONSUL_HTTP_TIMEOUT") or str(DEFAULT_TIMEOUT_S)
    try:
        timeout_s = float(raw_timeout)
    except ValueError:
        raise ConfigError(f'CONSUL_HTTP_TIMEOUT must be a number of seconds: "{raw_timeout}"') from None
    if not 0 < timeout_s < float("inf"):
        raise ConfigError(f'CONSUL_HTTP_TIMEOUT must be positive: "{raw_timeout}"')

    log_level = (env.get("CONSUL_CLIENT_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f'Unknown CONSUL_CLIENT_LOG_LEVEL: "{log_level}"')

    return Settings(
        http_addr=http_addr,
        token=env.get("CONSUL_HTTP_TOKEN") or None,
        timeout_s=timeout_s,
        log_level=log_level,
    )
