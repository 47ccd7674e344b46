"""Collaborator protocols consumed by the operation executor and poller.

Concrete resource-management clients (bot service, web-site management)
and the HTTP transport are injected. Anything that matches these protocols
works: SDK adapters in production, the recorders in ``inmemory`` for tests
and dry runs.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Protocol, runtime_checkable


@runtime_checkable
class RemoteResponse(Protocol):
    """Any response carrying an inspectable integer status code."""

    status_code: int | None


@runtime_checkable
class HttpResponse(Protocol):
    """Response shape returned by the HTTP transport (``httpx.Response`` fits)."""

    status_code: int
    headers: Mapping[str, str]


@runtime_checkable
class BotServiceClient(Protocol):
    """Bot registration and channel management."""

    async def update_bot(
        self, resource_group: str, name: str, properties: dict[str, Any],
    ) -> RemoteResponse | None: ...

    async def create_channel(
        self,
        resource_group: str,
        name: str,
        channel_name: str,
        channel: dict[str, Any],
    ) -> RemoteResponse | None: ...


@runtime_checkable
class WebSiteClient(Protocol):
    """Hosting site management."""

    async def create_or_update_site(
        self, resource_group: str, name: str, site: dict[str, Any],
    ) -> RemoteResponse | None: ...

    async def list_publishing_credentials(
        self, resource_group: str, name: str,
    ) -> RemoteResponse | None: ...

    async def restart_site(
        self, resource_group: str, name: str,
    ) -> RemoteResponse | None: ...


@runtime_checkable
class HttpTransport(Protocol):
    """Push and poll transport for deployment packages."""

    async def post(self, url: str, body: bytes, config: Any) -> HttpResponse: ...
    async def get(self, url: str, config: Any) -> HttpResponse: ...


SleepFn = Callable[[float], Awaitable[None]]
