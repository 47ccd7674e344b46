"""Async HTTP transport for pushing deployment packages and polling status.

One ``DeploymentTransport`` wraps one ``httpx.AsyncClient`` and is reused
for the package push and every status poll of a workflow run, so the
connection to the deployment endpoint is set up once. The caller owns the
client's lifetime (``async with DeploymentTransport() as transport``).

The transport performs no retries and no status interpretation; both are
the job of the operation executor and the status poller.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


# ── Credentials and per-request config ───────────────────────────


@dataclass(frozen=True, slots=True)
class PublishingCredentials:
    """Deployment (SCM) credentials for one hosting site."""

    username: str
    password: str = field(repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> PublishingCredentials:
        """Read credentials from a list-credentials response.

        Accepts attribute style (``publishing_user_name``) or mapping style
        (``publishingUserName`` / ``publishing_user_name``) payloads.
        """
        username = _read_field(
            payload, 'publishing_user_name', 'publishingUserName',
        )
        password = _read_field(
            payload, 'publishing_password', 'publishingPassword',
        )
        if not username or not password:
            raise ValueError('publishing credentials payload is incomplete')
        return cls(username=username, password=password)

    def basic_auth_header(self) -> str:
        token = base64.b64encode(
            f'{self.username}:{self.password}'.encode('utf-8'),
        ).decode('ascii')
        return f'Basic {token}'


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Immutable request configuration passed to each push or poll."""

    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def for_credentials(
        cls,
        credentials: PublishingCredentials,
        *,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> TransportConfig:
        return cls(
            headers=MappingProxyType(
                {'Authorization': credentials.basic_auth_header()},
            ),
            timeout_seconds=timeout_seconds,
        )

    def with_timeout(self, timeout_seconds: float) -> TransportConfig:
        return TransportConfig(headers=self.headers, timeout_seconds=timeout_seconds)


def _read_field(payload: Any, *names: str) -> str | None:
    # Response wrappers expose the credentials under ``body``.
    body = _lookup(payload, 'body')
    for source in (payload, body):
        if source is None:
            continue
        for name in names:
            value = _lookup(source, name)
            if isinstance(value, str) and value:
                return value
    return None


def _lookup(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


# ── Transport ────────────────────────────────────────────────────


class DeploymentTransport:
    """``HttpTransport`` backed by a single reusable ``httpx.AsyncClient``."""

    def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    async def __aenter__(self) -> DeploymentTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def post(
        self, url: str, body: bytes, config: TransportConfig,
    ) -> httpx.Response:
        logger.debug(
            'POST %s (%d bytes)',
            _redact_query(url),
            len(body),
            extra={'url': _redact_query(url), 'body_bytes': len(body)},
        )
        return await self._client.post(
            url,
            content=body,
            headers={
                'Content-Type': 'application/octet-stream',
                **dict(config.headers),
            },
            timeout=config.timeout_seconds,
        )

    async def get(self, url: str, config: TransportConfig) -> httpx.Response:
        logger.debug('GET %s', _redact_query(url), extra={'url': _redact_query(url)})
        return await self._client.get(
            url,
            headers=dict(config.headers),
            timeout=config.timeout_seconds,
        )


def _redact_query(url: str) -> str:
    """Drop the query string; deployment URLs may carry tokens there."""
    return url.split('?', 1)[0]
