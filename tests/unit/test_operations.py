"""Operation executor: call-then-validate contract for every remote step."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from bot_provisioning.errors import (
    ConfigUpdatingError,
    ConfigurationError,
    ListPublishingCredentialsError,
    MessageEndpointUpdatingError,
    ProvisionError,
    RestartWebAppError,
    ZipDeployError,
)
from bot_provisioning.http_status import HttpStatusClass
from bot_provisioning.inmemory import (
    FakeResponse,
    InMemoryBotServiceClient,
    InMemoryWebSiteClient,
    ScriptedTransport,
)
from bot_provisioning.operations import OperationExecutor, attempt
from bot_provisioning.poller import RetryPolicy
from bot_provisioning.transport import TransportConfig

ENDPOINT = 'https://echo-bot-dev.azurewebsites.net/api/messages'
ZIP_ENDPOINT = 'https://echo-bot-dev.scm.azurewebsites.net/api/zipdeploy?isAsync=true'


def _make_executor(
    *,
    bots: InMemoryBotServiceClient | None = None,
    sites: InMemoryWebSiteClient | None = None,
    transport: ScriptedTransport | None = None,
) -> OperationExecutor:
    return OperationExecutor(
        bot_client=bots or InMemoryBotServiceClient(),
        web_client=sites or InMemoryWebSiteClient(),
        transport=transport or ScriptedTransport(),
    )


# ── attempt combinator ───────────────────────────────────────────────


class TestAttempt:
    @pytest.mark.asyncio
    async def test_returns_response_on_ok(self):
        response = FakeResponse(200, {'ok': True})

        result = await attempt(AsyncMock(return_value=response), ZipDeployError)

        assert result is response

    @pytest.mark.asyncio
    async def test_wraps_raised_exception_as_cause(self):
        boom = RuntimeError('network down')

        with pytest.raises(ZipDeployError) as exc_info:
            await attempt(AsyncMock(side_effect=boom), ZipDeployError)

        assert exc_info.value.inner_error is boom
        assert exc_info.value.__cause__ is boom

    @pytest.mark.asyncio
    async def test_wrong_status_has_no_cause(self):
        with pytest.raises(ZipDeployError) as exc_info:
            await attempt(AsyncMock(return_value=FakeResponse(500)), ZipDeployError)

        assert exc_info.value.inner_error is None
        assert exc_info.value.__cause__ is None

    @pytest.mark.asyncio
    async def test_none_response_fails(self):
        with pytest.raises(ZipDeployError):
            await attempt(AsyncMock(return_value=None), ZipDeployError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize('status', [None, 'not-a-number', 3.5])
    async def test_unreadable_status_fails(self, status):
        with pytest.raises(RestartWebAppError):
            await attempt(
                AsyncMock(return_value=FakeResponse(status)),  # type: ignore[arg-type]
                RestartWebAppError,
            )

    @pytest.mark.asyncio
    async def test_accepted_class_is_configurable(self):
        response = httpx.Response(202)

        result = await attempt(
            AsyncMock(return_value=response),
            ZipDeployError,
            accept=HttpStatusClass.ACCEPTED,
        )

        assert result is response

    @pytest.mark.asyncio
    async def test_ok_is_rejected_when_accepted_required(self):
        with pytest.raises(ZipDeployError):
            await attempt(
                AsyncMock(return_value=httpx.Response(200)),
                ZipDeployError,
                accept=HttpStatusClass.ACCEPTED,
            )


# ── Bot registration ─────────────────────────────────────────────────


class TestUpdateBotRegistration:
    @pytest.mark.asyncio
    async def test_sends_endpoint_and_defaults_display_name(self):
        bots = InMemoryBotServiceClient()
        executor = _make_executor(bots=bots)

        await executor.update_bot_registration('rg', 'echo-bot', 'app-id', ENDPOINT)

        assert bots.bots['echo-bot'] == {
            'properties': {
                'displayName': 'echo-bot',
                'endpoint': ENDPOINT,
                'msaAppId': 'app-id',
            },
        }

    @pytest.mark.asyncio
    async def test_uses_explicit_display_name(self):
        bots = InMemoryBotServiceClient()
        executor = _make_executor(bots=bots)

        await executor.update_bot_registration(
            'rg', 'echo-bot', 'app-id', ENDPOINT, display_name='Echo Bot',
        )

        assert bots.bots['echo-bot']['properties']['displayName'] == 'Echo Bot'

    @pytest.mark.asyncio
    async def test_raise_maps_to_endpoint_error_with_cause(self):
        boom = RuntimeError('denied')
        executor = _make_executor(bots=InMemoryBotServiceClient(update_error=boom))

        with pytest.raises(MessageEndpointUpdatingError) as exc_info:
            await executor.update_bot_registration('rg', 'echo-bot', 'app-id', ENDPOINT)

        assert exc_info.value.inner_error is boom
        assert exc_info.value.endpoint == ENDPOINT
        assert ENDPOINT in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_bad_status_maps_to_endpoint_error_without_cause(self):
        executor = _make_executor(bots=InMemoryBotServiceClient(update_status=409))

        with pytest.raises(MessageEndpointUpdatingError) as exc_info:
            await executor.update_bot_registration('rg', 'echo-bot', 'app-id', ENDPOINT)

        assert exc_info.value.inner_error is None


# ── Teams channel ────────────────────────────────────────────────────


class TestLinkTeamsChannel:
    @pytest.mark.asyncio
    async def test_creates_enabled_global_channel(self):
        bots = InMemoryBotServiceClient()
        executor = _make_executor(bots=bots)

        await executor.link_teams_channel('rg', 'echo-bot')

        channel = bots.channels['echo-bot/MsTeamsChannel']
        assert channel['location'] == 'global'
        assert channel['kind'] == 'bot'
        assert channel['properties']['channelName'] == 'MsTeamsChannel'
        assert channel['properties']['properties'] == {'isEnabled': True}

    @pytest.mark.asyncio
    async def test_raise_maps_to_provision_error(self):
        boom = RuntimeError('quota')
        executor = _make_executor(bots=InMemoryBotServiceClient(channel_error=boom))

        with pytest.raises(ProvisionError) as exc_info:
            await executor.link_teams_channel('rg', 'echo-bot')

        assert exc_info.value.resource_name == 'MsTeamsChannel'
        assert exc_info.value.inner_error is boom

    @pytest.mark.asyncio
    async def test_bad_status_maps_to_provision_error(self):
        executor = _make_executor(bots=InMemoryBotServiceClient(channel_status=400))

        with pytest.raises(ProvisionError) as exc_info:
            await executor.link_teams_channel('rg', 'echo-bot')

        assert exc_info.value.inner_error is None


# ── Site create or update ────────────────────────────────────────────


class TestCreateOrUpdateSite:
    @pytest.mark.asyncio
    async def test_returns_response_on_success(self):
        sites = InMemoryWebSiteClient()
        executor = _make_executor(sites=sites)

        response = await executor.create_or_update_site('rg', 'echo-bot-dev', {'location': 'westus'})

        assert response.status_code == 200
        assert response.body['name'] == 'echo-bot-dev'
        assert sites.sites['echo-bot-dev'] == {'location': 'westus'}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ('is_update', 'expected'),
        [(False, ProvisionError), (True, ConfigUpdatingError)],
    )
    async def test_raise_error_kind_depends_on_update_flag(self, is_update, expected):
        boom = RuntimeError('conflict')
        executor = _make_executor(sites=InMemoryWebSiteClient(site_error=boom))

        with pytest.raises(expected) as exc_info:
            await executor.create_or_update_site('rg', 'echo-bot-dev', {}, is_update=is_update)

        assert exc_info.value.inner_error is boom

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ('is_update', 'expected'),
        [(False, ProvisionError), (True, ConfigUpdatingError)],
    )
    async def test_bad_status_error_kind_depends_on_update_flag(self, is_update, expected):
        executor = _make_executor(sites=InMemoryWebSiteClient(site_status=500))

        with pytest.raises(expected) as exc_info:
            await executor.create_or_update_site('rg', 'echo-bot-dev', {}, is_update=is_update)

        assert exc_info.value.inner_error is None

    @pytest.mark.asyncio
    async def test_update_error_names_auth_configs(self):
        executor = _make_executor(sites=InMemoryWebSiteClient(site_status=500))

        with pytest.raises(ConfigUpdatingError) as exc_info:
            await executor.create_or_update_site('rg', 'echo-bot-dev', {}, is_update=True)

        assert exc_info.value.config_name == "Azure Web App's auth configs"

    @pytest.mark.asyncio
    async def test_create_error_names_web_app(self):
        executor = _make_executor(sites=InMemoryWebSiteClient(site_status=500))

        with pytest.raises(ProvisionError) as exc_info:
            await executor.create_or_update_site('rg', 'echo-bot-dev', {})

        assert exc_info.value.resource_name == 'Azure Web App'


# ── Publishing credentials ───────────────────────────────────────────


class TestListPublishingCredentials:
    @pytest.mark.asyncio
    async def test_returns_payload(self):
        executor = _make_executor()

        response = await executor.list_publishing_credentials('rg', 'echo-bot-dev')

        assert response.body['publishing_user_name'] == '$bot-site'

    @pytest.mark.asyncio
    async def test_raise_maps_to_list_error(self):
        boom = RuntimeError('forbidden')
        executor = _make_executor(sites=InMemoryWebSiteClient(credentials_error=boom))

        with pytest.raises(ListPublishingCredentialsError) as exc_info:
            await executor.list_publishing_credentials('rg', 'echo-bot-dev')

        assert exc_info.value.inner_error is boom

    @pytest.mark.asyncio
    async def test_bad_status_maps_to_list_error(self):
        executor = _make_executor(sites=InMemoryWebSiteClient(credentials_status=403))

        with pytest.raises(ListPublishingCredentialsError) as exc_info:
            await executor.list_publishing_credentials('rg', 'echo-bot-dev')

        assert exc_info.value.inner_error is None


# ── Zip deploy ───────────────────────────────────────────────────────


class TestZipDeployPackage:
    @pytest.mark.asyncio
    async def test_returns_location_on_accepted(self):
        transport = ScriptedTransport(push=202, location='https://scm/api/deployments/42')
        executor = _make_executor(transport=transport)

        location = await executor.zip_deploy_package(ZIP_ENDPOINT, b'PK\x03\x04', TransportConfig())

        assert location == 'https://scm/api/deployments/42'
        assert transport.calls == [('POST', ZIP_ENDPOINT)]
        assert transport.pushed == [b'PK\x03\x04']

    @pytest.mark.asyncio
    async def test_ok_is_not_an_accepted_push(self):
        executor = _make_executor(transport=ScriptedTransport(push=200))

        with pytest.raises(ZipDeployError) as exc_info:
            await executor.zip_deploy_package(ZIP_ENDPOINT, b'zip', TransportConfig())

        assert exc_info.value.inner_error is None

    @pytest.mark.asyncio
    async def test_accepted_without_location_fails(self):
        executor = _make_executor(transport=ScriptedTransport(push=202, location=None))

        with pytest.raises(ZipDeployError) as exc_info:
            await executor.zip_deploy_package(ZIP_ENDPOINT, b'zip', TransportConfig())

        assert exc_info.value.inner_error is None

    @pytest.mark.asyncio
    async def test_transport_error_maps_to_zip_deploy_error(self):
        boom = httpx.ConnectTimeout('timed out')
        executor = _make_executor(transport=ScriptedTransport(push=boom))

        with pytest.raises(ZipDeployError) as exc_info:
            await executor.zip_deploy_package(ZIP_ENDPOINT, b'zip', TransportConfig())

        assert exc_info.value.inner_error is boom


# ── Restart ──────────────────────────────────────────────────────────


class TestRestartSite:
    @pytest.mark.asyncio
    async def test_restarts_named_site(self):
        sites = InMemoryWebSiteClient()
        executor = _make_executor(sites=sites)

        await executor.restart_site('rg', 'echo-bot-dev')

        assert sites.calls == [('restart_site', 'echo-bot-dev')]

    @pytest.mark.asyncio
    async def test_raise_maps_to_restart_error(self):
        boom = RuntimeError('busy')
        executor = _make_executor(sites=InMemoryWebSiteClient(restart_error=boom))

        with pytest.raises(RestartWebAppError) as exc_info:
            await executor.restart_site('rg', 'echo-bot-dev')

        assert exc_info.value.inner_error is boom

    @pytest.mark.asyncio
    async def test_accepted_is_not_a_restart_success(self):
        executor = _make_executor(sites=InMemoryWebSiteClient(restart_status=202))

        with pytest.raises(RestartWebAppError):
            await executor.restart_site('rg', 'echo-bot-dev')


# ── Missing collaborators ────────────────────────────────────────────


class TestTransportOnlyExecutor:
    @pytest.mark.asyncio
    async def test_resource_steps_need_clients(self):
        executor = OperationExecutor(transport=ScriptedTransport())

        with pytest.raises(ConfigurationError):
            await executor.restart_site('rg', 'echo-bot-dev')
        with pytest.raises(ConfigurationError):
            await executor.link_teams_channel('rg', 'echo-bot')

    @pytest.mark.asyncio
    async def test_push_works_without_clients(self):
        executor = OperationExecutor(transport=ScriptedTransport())

        location = await executor.zip_deploy_package(ZIP_ENDPOINT, b'zip', TransportConfig())

        assert location.endswith('/api/deployments/latest')

    def test_status_poller_shares_transport(self):
        transport = ScriptedTransport()
        executor = OperationExecutor(transport=transport)

        poller = executor.build_status_poller(RetryPolicy(max_attempts=2))

        assert poller._transport is transport
        assert poller.policy.max_attempts == 2
