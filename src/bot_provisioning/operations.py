"""Operation executor: one remote call per step, reduced to payload or typed error.

Every step goes through :func:`attempt`:

  1. Await the collaborator call.
  2. If it raises, raise the step's error with the exception attached.
  3. Otherwise classify the response status. The step's accepted class
     returns the response; anything else (including a missing response or
     an unreadable status) raises the same error with no inner error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .errors import (
    AZURE_WEB_APP,
    AZURE_WEB_APP_AUTH_CONFIGS,
    MS_TEAMS_CHANNEL,
    ConfigUpdatingError,
    ConfigurationError,
    ListPublishingCredentialsError,
    MessageEndpointUpdatingError,
    ProvisionError,
    ProvisioningError,
    RestartWebAppError,
    ZipDeployError,
)
from .http_status import HttpStatusClass, classify_response
from .poller import DeploymentStatusPoller, RetryPolicy
from .protocols import BotServiceClient, HttpTransport, SleepFn, WebSiteClient
from .transport import TransportConfig

logger = logging.getLogger(__name__)

T = TypeVar('T')

ErrorFactory = Callable[[BaseException | None], ProvisioningError]


async def attempt(
    call: Callable[[], Awaitable[T]],
    error_factory: ErrorFactory,
    *,
    accept: HttpStatusClass = HttpStatusClass.OK_OR_CREATED,
) -> T:
    """Run one remote call and validate its status.

    Raises:
        ProvisioningError: Built by *error_factory*, with the raised
            exception when the call failed, or with ``None`` when the
            response status was not *accept*.
    """
    try:
        response = await call()
    except Exception as exc:
        raise error_factory(exc) from exc

    if response is None or classify_response(response) is not accept:
        raise error_factory(None)
    return response


class OperationExecutor:
    """Runs the individual provisioning steps against injected collaborators.

    A package-only deploy needs just the transport; the resource clients
    are required by the registration, channel and site steps.

    ``transport`` is shared with the status poller built by
    :meth:`build_status_poller`, so the package push and the status polls reuse
    one connection pool.
    """

    def __init__(
        self,
        *,
        transport: HttpTransport,
        bot_client: BotServiceClient | None = None,
        web_client: WebSiteClient | None = None,
    ) -> None:
        self._bot_client = bot_client
        self._web_client = web_client
        self._transport = transport

    @property
    def _bots(self) -> BotServiceClient:
        if self._bot_client is None:
            raise ConfigurationError('no bot service client configured')
        return self._bot_client

    @property
    def _sites(self) -> WebSiteClient:
        if self._web_client is None:
            raise ConfigurationError('no web-site client configured')
        return self._web_client

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    async def update_bot_registration(
        self,
        resource_group: str,
        registration_name: str,
        msa_app_id: str,
        endpoint: str,
        display_name: str | None = None,
    ) -> None:
        properties = {
            'properties': {
                'displayName': display_name or registration_name,
                'endpoint': endpoint,
                'msaAppId': msa_app_id,
            },
        }
        bots = self._bots
        await attempt(
            lambda: bots.update_bot(resource_group, registration_name, properties),
            lambda cause: MessageEndpointUpdatingError(endpoint, cause),
        )
        logger.info(
            'Bot registration %s now points at %s',
            registration_name,
            endpoint,
            extra={'registration_name': registration_name, 'endpoint': endpoint},
        )

    async def link_teams_channel(
        self,
        resource_group: str,
        registration_name: str,
    ) -> None:
        channel = {
            'location': 'global',
            'kind': 'bot',
            'properties': {
                'channelName': MS_TEAMS_CHANNEL,
                'properties': {'isEnabled': True},
            },
        }
        bots = self._bots
        await attempt(
            lambda: bots.create_channel(
                resource_group, registration_name, MS_TEAMS_CHANNEL, channel,
            ),
            lambda cause: ProvisionError(MS_TEAMS_CHANNEL, cause),
        )
        logger.info(
            'Linked %s to %s',
            MS_TEAMS_CHANNEL,
            registration_name,
            extra={'registration_name': registration_name},
        )

    async def create_or_update_site(
        self,
        resource_group: str,
        site_name: str,
        site: dict[str, Any],
        *,
        is_update: bool = False,
    ) -> Any:
        """Create the hosting site, or reconfigure it when *is_update*.

        The same call serves both callers; only the error kind differs:
        ``ProvisionError`` on create, ``ConfigUpdatingError`` on update.
        """
        def error_factory(cause: BaseException | None) -> ProvisioningError:
            if is_update:
                return ConfigUpdatingError(AZURE_WEB_APP_AUTH_CONFIGS, cause)
            return ProvisionError(AZURE_WEB_APP, cause)

        sites = self._sites
        response = await attempt(
            lambda: sites.create_or_update_site(resource_group, site_name, site),
            error_factory,
        )
        logger.info(
            '%s site %s',
            'Updated' if is_update else 'Created',
            site_name,
            extra={'site_name': site_name, 'is_update': is_update},
        )
        return response

    async def list_publishing_credentials(
        self,
        resource_group: str,
        site_name: str,
    ) -> Any:
        sites = self._sites
        return await attempt(
            lambda: sites.list_publishing_credentials(resource_group, site_name),
            ListPublishingCredentialsError,
        )

    async def zip_deploy_package(
        self,
        zip_deploy_endpoint: str,
        package: bytes,
        config: TransportConfig,
    ) -> str:
        """Push the package and return the location to poll.

        Only ``202 Accepted`` is a successful push. An accepted push that
        names no location is also a ``ZipDeployError``.
        """
        response = await attempt(
            lambda: self._transport.post(zip_deploy_endpoint, package, config),
            ZipDeployError,
            accept=HttpStatusClass.ACCEPTED,
        )
        location = _location_header(response)
        if not location:
            raise ZipDeployError()
        logger.info(
            'Deployment package accepted (%d bytes)',
            len(package),
            extra={'body_bytes': len(package)},
        )
        return location

    def build_status_poller(
        self,
        policy: RetryPolicy,
        *,
        sleep: SleepFn = asyncio.sleep,
    ) -> DeploymentStatusPoller:
        """Build a poller that shares this executor's transport."""
        return DeploymentStatusPoller(self._transport, policy, sleep=sleep)

    async def restart_site(self, resource_group: str, site_name: str) -> None:
        sites = self._sites
        await attempt(
            lambda: sites.restart_site(resource_group, site_name),
            RestartWebAppError,
        )
        logger.info('Restarted site %s', site_name, extra={'site_name': site_name})


def _location_header(response: Any) -> str | None:
    headers = getattr(response, 'headers', None)
    if headers is None:
        return None
    location = headers.get('location') or headers.get('Location')
    if isinstance(location, str) and location.strip():
        return location.strip()
    return None
