"""Provisioning configuration settings.

ProvisioningSettings is the single configuration object the workflow and
CLI accept. It is a plain frozen dataclass (not env-coupled) so tests can
inject config without touching os.environ; ``from_env`` is the production
convenience.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigurationError
from .poller import DEFAULT_BACKOFF_TIME_S, DEFAULT_RETRY_TIMES, RetryPolicy

_LOG_LEVELS = frozenset({'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'})


@dataclass(frozen=True, slots=True)
class ProvisioningSettings:
    """Configuration for one provisioning workflow run."""

    # ── Deployment status polling ──────────────────────────────────
    deploy_retry_times: int = DEFAULT_RETRY_TIMES
    """Poll attempt ceiling (RETRY_TIMES)."""

    deploy_backoff_seconds: float = DEFAULT_BACKOFF_TIME_S
    """Fixed delay between poll attempts (BACKOFF_TIME_S)."""

    # ── HTTP transport ─────────────────────────────────────────────
    http_timeout_seconds: float = 30.0
    """Per-request timeout for status polls."""

    zip_deploy_timeout_seconds: float = 600.0
    """Timeout for the package push; packages can be large."""

    # ── Hosting endpoints ──────────────────────────────────────────
    site_domain_suffix: str = 'azurewebsites.net'
    scm_domain_suffix: str = 'scm.azurewebsites.net'

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = 'INFO'
    log_format: str = 'json'
    """``json`` for JSON lines, anything else for console output."""

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.deploy_retry_times < 1:
            errors.append('deploy_retry_times must be >= 1')
        if self.deploy_backoff_seconds < 0:
            errors.append('deploy_backoff_seconds must be >= 0')
        if self.http_timeout_seconds <= 0:
            errors.append('http_timeout_seconds must be > 0')
        if self.zip_deploy_timeout_seconds <= 0:
            errors.append('zip_deploy_timeout_seconds must be > 0')
        if not self.site_domain_suffix.strip('.'):
            errors.append('site_domain_suffix is required')
        if not self.scm_domain_suffix.strip('.'):
            errors.append('scm_domain_suffix is required')
        if self.log_level.upper() not in _LOG_LEVELS:
            errors.append(f'unknown log_level {self.log_level!r}')
        return errors

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.deploy_retry_times,
            backoff_seconds=self.deploy_backoff_seconds,
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ProvisioningSettings:
        """Build settings from environment variables.

        Unset variables keep their defaults. Malformed numbers raise
        ``ConfigurationError`` naming the variable.
        """
        if env is None:
            env = dict(os.environ)

        defaults = cls()
        return cls(
            deploy_retry_times=_int_from(
                env, 'BOT_DEPLOY_RETRY_TIMES', defaults.deploy_retry_times,
            ),
            deploy_backoff_seconds=_float_from(
                env, 'BOT_DEPLOY_BACKOFF_TIME_S', defaults.deploy_backoff_seconds,
            ),
            http_timeout_seconds=_float_from(
                env, 'BOT_HTTP_TIMEOUT_S', defaults.http_timeout_seconds,
            ),
            zip_deploy_timeout_seconds=_float_from(
                env, 'BOT_ZIP_DEPLOY_TIMEOUT_S', defaults.zip_deploy_timeout_seconds,
            ),
            site_domain_suffix=env.get(
                'BOT_SITE_DOMAIN_SUFFIX', defaults.site_domain_suffix,
            ).strip(),
            scm_domain_suffix=env.get(
                'BOT_SCM_DOMAIN_SUFFIX', defaults.scm_domain_suffix,
            ).strip(),
            log_level=env.get('LOG_LEVEL', defaults.log_level).strip().upper(),
            log_format=env.get('LOG_FORMAT', defaults.log_format).strip().lower(),
        )


def _int_from(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f'{name} must be an integer, got {raw!r}') from None


def _float_from(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f'{name} must be a number, got {raw!r}') from None
