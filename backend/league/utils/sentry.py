"""Sentry wiring for the league API.

Everything is driven by environment variables so the same image can run with
or without error reporting. Failed match-count lookups are reported through
``sentry_sdk.capture_exception``, which is a no-op until :func:`init_sentry`
has configured a client.
"""

import logging
import os
from dataclasses import dataclass

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

logger = logging.getLogger(__name__)


def _parse_sample_rate(env_var: str, default: float = 0.0) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        rate = float(raw)
    except ValueError:
        logger.warning("%s is not a valid float (got %r); using %.2f", env_var, raw, default)
        return default
    if rate < 0:
        logger.warning("%s cannot be negative; using %.2f", env_var, default)
        return default
    return rate


def sentry_dsn() -> str | None:
    return (os.getenv("SENTRY_DSN") or "").strip() or None


@dataclass(frozen=True)
class SentrySettings:
    dsn: str
    environment: str | None
    traces_sample_rate: float
    profiles_sample_rate: float

    @classmethod
    def from_env(cls) -> "SentrySettings | None":
        dsn = sentry_dsn()
        if dsn is None:
            return None
        return cls(
            dsn=dsn,
            environment=(os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None,
            traces_sample_rate=_parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
            profiles_sample_rate=_parse_sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
        )


def init_sentry() -> bool:
    """Initialise Sentry from the environment; return whether it was enabled."""

    settings = SentrySettings.from_env()
    if settings is None:
        logger.info("SENTRY_DSN not provided; error reporting disabled.")
        return False

    sentry_sdk.init(
        dsn=settings.dsn,
        integrations=[FastApiIntegration()],
        environment=settings.environment,
        traces_sample_rate=settings.traces_sample_rate,
        profiles_sample_rate=settings.profiles_sample_rate,
    )
    logger.info("Sentry enabled (environment=%s)", settings.environment or "default")
    return True
