"""Hosting-site descriptor and endpoint contract for bot provisioning.

Computes the public endpoints a bot deployment depends on:
  - site endpoint:     ``https://{site_name}.{site_domain_suffix}``
  - message endpoint:  ``{site_endpoint}/api/messages``
  - zip deploy:        ``https://{site_name}.{scm_domain_suffix}/api/zipdeploy?isAsync=true``

and builds the site envelope sent to create-or-update.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

MESSAGES_PATH = '/api/messages'
ZIP_DEPLOY_PATH = '/api/zipdeploy'
DEPLOY_AUTHOR = 'bot-provisioning'
DEFAULT_NODE_VERSION = '~18'

_SITE_NAME_RE = re.compile(r'^[a-z0-9](?:[a-z0-9-]{0,58}[a-z0-9])?$')


@dataclass(frozen=True, slots=True)
class BotSiteSpec:
    """Resolved selectors for one bot's registration and hosting site."""

    resource_group: str
    site_name: str
    registration_name: str
    app_id: str
    app_password: str = field(repr=False)
    location: str
    server_farm_id: str
    display_name: str | None = None
    node_version: str = DEFAULT_NODE_VERSION
    extra_app_settings: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )

    def __post_init__(self) -> None:
        validate_site_name(self.site_name)


def validate_site_name(site_name: str) -> str:
    """Site names become DNS labels: lowercase alphanumerics and hyphens."""
    if not _SITE_NAME_RE.match(site_name):
        raise ValueError(
            f'invalid site name {site_name!r}: use 1-60 lowercase letters, '
            'digits or hyphens, not starting or ending with a hyphen'
        )
    return site_name


def site_endpoint(site_name: str, domain_suffix: str = 'azurewebsites.net') -> str:
    return f'https://{site_name}.{domain_suffix.strip(".")}'


def message_endpoint(endpoint: str) -> str:
    return f'{endpoint.rstrip("/")}{MESSAGES_PATH}'


def zip_deploy_endpoint(
    site_name: str,
    scm_domain_suffix: str = 'scm.azurewebsites.net',
) -> str:
    return (
        f'https://{site_name}.{scm_domain_suffix.strip(".")}{ZIP_DEPLOY_PATH}'
        f'?isAsync=true&author={DEPLOY_AUTHOR}'
    )


def build_app_settings(spec: BotSiteSpec) -> list[dict[str, str]]:
    """App settings the bot runtime reads at startup, as name/value pairs."""
    settings = {
        'BOT_ID': spec.app_id,
        'BOT_PASSWORD': spec.app_password,
        'SCM_DO_BUILD_DURING_DEPLOYMENT': 'true',
        'WEBSITE_NODE_DEFAULT_VERSION': spec.node_version,
        **dict(spec.extra_app_settings),
    }
    return [{'name': name, 'value': value} for name, value in settings.items()]


def build_site_envelope(spec: BotSiteSpec) -> dict[str, Any]:
    """Site descriptor for the initial create-or-update call."""
    return {
        'location': spec.location,
        'kind': 'app',
        'serverFarmId': spec.server_farm_id,
        'siteConfig': {
            'alwaysOn': True,
            'appSettings': build_app_settings(spec),
        },
    }


def merge_app_settings(
    envelope: Mapping[str, Any],
    updates: Mapping[str, str],
) -> dict[str, Any]:
    """Return a copy of *envelope* with *updates* applied to its app settings.

    Existing names are overwritten in place; new names are appended. The
    input envelope is not modified.
    """
    merged = copy.deepcopy(dict(envelope))
    site_config = merged.setdefault('siteConfig', {})
    current = site_config.setdefault('appSettings', [])
    index = {entry.get('name'): i for i, entry in enumerate(current)}
    for name, value in updates.items():
        if name in index:
            current[index[name]] = {'name': name, 'value': value}
        else:
            current.append({'name': name, 'value': value})
    return merged
