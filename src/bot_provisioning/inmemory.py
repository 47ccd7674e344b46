"""In-memory collaborator implementations for tests and dry runs.

These satisfy the protocols in ``protocols`` without touching the network.
Each records its calls so assertions can check ordering and arguments, and
each can be scripted to fail by raising or by returning a bad status.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx


@dataclass(slots=True)
class FakeResponse:
    """Resource-management response with an inspectable status code."""

    status_code: int | None = 200
    body: Any = None


class InMemoryBotServiceClient:
    """Bot service recorder. Statuses are per-method; exceptions are raised."""

    def __init__(
        self,
        *,
        update_status: int | None = 200,
        channel_status: int | None = 201,
        update_error: BaseException | None = None,
        channel_error: BaseException | None = None,
    ) -> None:
        self.update_status = update_status
        self.channel_status = channel_status
        self.update_error = update_error
        self.channel_error = channel_error
        self.calls: list[tuple[str, str]] = []
        self.bots: dict[str, dict[str, Any]] = {}
        self.channels: dict[str, dict[str, Any]] = {}

    async def update_bot(
        self, resource_group: str, name: str, properties: dict[str, Any],
    ) -> FakeResponse:
        self.calls.append(('update_bot', name))
        if self.update_error is not None:
            raise self.update_error
        self.bots[name] = properties
        return FakeResponse(self.update_status, properties)

    async def create_channel(
        self,
        resource_group: str,
        name: str,
        channel_name: str,
        channel: dict[str, Any],
    ) -> FakeResponse:
        self.calls.append(('create_channel', name))
        if self.channel_error is not None:
            raise self.channel_error
        self.channels[f'{name}/{channel_name}'] = channel
        return FakeResponse(self.channel_status, channel)


class InMemoryWebSiteClient:
    """Web-site management recorder."""

    def __init__(
        self,
        *,
        site_status: int | None = 200,
        credentials_status: int | None = 200,
        restart_status: int | None = 200,
        site_error: BaseException | None = None,
        credentials_error: BaseException | None = None,
        restart_error: BaseException | None = None,
        publishing_user_name: str = '$bot-site',
        publishing_password: str = 'publish-secret',
    ) -> None:
        self.site_status = site_status
        self.credentials_status = credentials_status
        self.restart_status = restart_status
        self.site_error = site_error
        self.credentials_error = credentials_error
        self.restart_error = restart_error
        self.publishing_user_name = publishing_user_name
        self.publishing_password = publishing_password
        self.calls: list[tuple[str, str]] = []
        self.sites: dict[str, dict[str, Any]] = {}

    async def create_or_update_site(
        self, resource_group: str, name: str, site: dict[str, Any],
    ) -> FakeResponse:
        self.calls.append(('create_or_update_site', name))
        if self.site_error is not None:
            raise self.site_error
        self.sites[name] = site
        return FakeResponse(self.site_status, {'name': name, **site})

    async def list_publishing_credentials(
        self, resource_group: str, name: str,
    ) -> FakeResponse:
        self.calls.append(('list_publishing_credentials', name))
        if self.credentials_error is not None:
            raise self.credentials_error
        return FakeResponse(
            self.credentials_status,
            {
                'publishing_user_name': self.publishing_user_name,
                'publishing_password': self.publishing_password,
            },
        )

    async def restart_site(self, resource_group: str, name: str) -> FakeResponse:
        self.calls.append(('restart_site', name))
        if self.restart_error is not None:
            raise self.restart_error
        return FakeResponse(self.restart_status)


class ScriptedTransport:
    """HTTP transport that replays scripted push and poll outcomes.

    Each script entry is a status code (turned into an ``httpx.Response``)
    or an exception instance (raised). The push defaults to ``202`` with a
    ``Location`` header; polls default to a single ``200``.
    """

    def __init__(
        self,
        *,
        push: int | BaseException = 202,
        location: str | None = 'https://bot-site.scm.azurewebsites.net/api/deployments/latest',
        polls: Iterable[int | BaseException] = (200,),
    ) -> None:
        self._push = push
        self._location = location
        self._polls = deque(polls)
        self.calls: list[tuple[str, str]] = []
        self.pushed: list[bytes] = []

    @property
    def remaining_polls(self) -> int:
        return len(self._polls)

    async def post(self, url: str, body: bytes, config: Any) -> httpx.Response:
        self.calls.append(('POST', url))
        self.pushed.append(body)
        if isinstance(self._push, BaseException):
            raise self._push
        headers = {'location': self._location} if self._location else {}
        return httpx.Response(self._push, headers=headers)

    async def get(self, url: str, config: Any) -> httpx.Response:
        self.calls.append(('GET', url))
        if not self._polls:
            raise AssertionError(f'unexpected poll of {url}')
        outcome = self._polls.popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        return httpx.Response(outcome)


@dataclass(slots=True)
class RecordingSleep:
    """Sleep primitive that records requested delays instead of waiting."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def count(self) -> int:
        return len(self.delays)
