"""Pytest configuration for bot_provisioning tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports without an editable install.
_SRC = Path(__file__).parent.parent / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from bot_provisioning.inmemory import (
    InMemoryBotServiceClient,
    InMemoryWebSiteClient,
    RecordingSleep,
    ScriptedTransport,
)
from bot_provisioning.site_config import BotSiteSpec


@pytest.fixture
def bot_spec():
    """Site spec for a typical bot deployment."""
    return BotSiteSpec(
        resource_group='rg-bot',
        site_name='echo-bot-dev',
        registration_name='echo-bot-dev',
        app_id='11111111-2222-3333-4444-555555555555',
        app_password='app-secret',
        location='westus',
        server_farm_id='/subscriptions/sub/resourceGroups/rg-bot/providers/Microsoft.Web/serverfarms/echo-plan',
    )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def bot_client():
    return InMemoryBotServiceClient()


@pytest.fixture
def web_client():
    return InMemoryWebSiteClient()


@pytest.fixture
def transport():
    return ScriptedTransport()
