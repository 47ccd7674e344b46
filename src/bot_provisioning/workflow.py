"""Provisioning workflow: drives one bot through every deploy step.

Orchestrates the linear flow for one bot resource:
  update_registration -> link_channel -> create_site -> list_credentials
  -> zip_deploy -> deploy_status -> restart

Every step is awaited before the next starts. The first failing step's
``ProvisioningError`` propagates unchanged; nothing already provisioned is
rolled back. ``list_credentials`` is skipped when the caller already holds
publishing credentials.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ListPublishingCredentialsError, ProvisioningError
from .operations import OperationExecutor
from .poller import PollResult
from .protocols import SleepFn
from .settings import ProvisioningSettings
from .site_config import (
    BotSiteSpec,
    build_site_envelope,
    merge_app_settings,
    message_endpoint,
    site_endpoint,
    zip_deploy_endpoint,
)
from .transport import PublishingCredentials, TransportConfig

logger = logging.getLogger(__name__)

WORKFLOW_STEPS = (
    'update_registration',
    'link_channel',
    'create_site',
    'list_credentials',
    'zip_deploy',
    'deploy_status',
    'restart',
)


@dataclass(frozen=True, slots=True)
class WorkflowResult:
    """Outcome of a completed provisioning run."""

    completed_steps: tuple[str, ...]
    skipped_steps: tuple[str, ...]
    site: Any
    endpoint: str
    deployment_location: str
    poll: PollResult


class ProvisioningWorkflow:
    """Runs the provisioning steps in order against one executor.

    The executor's transport is shared by the package push and the status
    poller; the caller owns that transport and closes it after the run.
    """

    def __init__(
        self,
        *,
        executor: OperationExecutor,
        settings: ProvisioningSettings | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._executor = executor
        self._settings = settings or ProvisioningSettings()
        self._poller = executor.build_status_poller(
            self._settings.retry_policy(), sleep=sleep,
        )

    async def run(
        self,
        spec: BotSiteSpec,
        package: bytes,
        *,
        credentials: PublishingCredentials | None = None,
    ) -> WorkflowResult:
        """Execute the full flow for *spec*, deploying *package*.

        Raises:
            ProvisioningError: From the first step that fails.
        """
        completed: list[str] = []
        skipped: list[str] = []
        endpoint = site_endpoint(spec.site_name, self._settings.site_domain_suffix)

        async def step(name: str, coro: Any) -> Any:
            logger.info('Starting step %s', name, extra={'step': name, 'site_name': spec.site_name})
            try:
                result = await coro
            except ProvisioningError as exc:
                logger.error(
                    'Step %s failed: %s',
                    name,
                    exc.code,
                    extra={
                        'step': name,
                        'error_code': exc.code,
                        'has_inner_error': exc.inner_error is not None,
                    },
                )
                raise
            completed.append(name)
            logger.info('Finished step %s', name, extra={'step': name, 'site_name': spec.site_name})
            return result

        await step(
            'update_registration',
            self._executor.update_bot_registration(
                spec.resource_group,
                spec.registration_name,
                spec.app_id,
                message_endpoint(endpoint),
                spec.display_name,
            ),
        )
        await step(
            'link_channel',
            self._executor.link_teams_channel(
                spec.resource_group, spec.registration_name,
            ),
        )
        site = await step(
            'create_site',
            self._executor.create_or_update_site(
                spec.resource_group,
                spec.site_name,
                build_site_envelope(spec),
                is_update=False,
            ),
        )

        if credentials is None:
            credentials = await step('list_credentials', self._fetch_credentials(spec))
        else:
            skipped.append('list_credentials')
            logger.info('Skipping step list_credentials', extra={'step': 'list_credentials'})

        push_config = TransportConfig.for_credentials(
            credentials,
            timeout_seconds=self._settings.zip_deploy_timeout_seconds,
        )
        location = await step(
            'zip_deploy',
            self._executor.zip_deploy_package(
                zip_deploy_endpoint(spec.site_name, self._settings.scm_domain_suffix),
                package,
                push_config,
            ),
        )
        poll = await step(
            'deploy_status',
            self._poller.wait_for_completion(
                location,
                push_config.with_timeout(self._settings.http_timeout_seconds),
            ),
        )
        await step(
            'restart',
            self._executor.restart_site(spec.resource_group, spec.site_name),
        )

        logger.info(
            'Provisioning completed for %s',
            spec.site_name,
            extra={'site_name': spec.site_name, 'poll_attempts': poll.attempts},
        )
        return WorkflowResult(
            completed_steps=tuple(completed),
            skipped_steps=tuple(skipped),
            site=site,
            endpoint=endpoint,
            deployment_location=location,
            poll=poll,
        )

    async def update_site_settings(
        self,
        spec: BotSiteSpec,
        updates: Mapping[str, str],
        *,
        envelope: Mapping[str, Any] | None = None,
    ) -> Any:
        """Reconfigure the existing site's app settings.

        Uses the create-or-update call in update mode, so failures surface
        as ``ConfigUpdatingError``.
        """
        base = envelope if envelope is not None else build_site_envelope(spec)
        return await self._executor.create_or_update_site(
            spec.resource_group,
            spec.site_name,
            merge_app_settings(base, updates),
            is_update=True,
        )

    async def _fetch_credentials(self, spec: BotSiteSpec) -> PublishingCredentials:
        payload = await self._executor.list_publishing_credentials(
            spec.resource_group, spec.site_name,
        )
        try:
            return PublishingCredentials.from_payload(payload)
        except ValueError as exc:
            raise ListPublishingCredentialsError(exc) from exc
