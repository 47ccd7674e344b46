"""Command-line entry point: package a bot folder and deploy it.

``deploy`` zips a folder, pushes it to the site's zip-deploy endpoint with
the site's publishing credentials, and waits for the deployment to settle.
``--dry-run`` runs the full provisioning workflow against in-memory
collaborators instead, which exercises every step without a network.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from .errors import ConfigurationError, ProvisioningError
from .inmemory import (
    InMemoryBotServiceClient,
    InMemoryWebSiteClient,
    RecordingSleep,
    ScriptedTransport,
)
from .logging import bind_run_id, configure_logging
from .operations import OperationExecutor
from .packaging import DEFAULT_IGNORES, package_digest, zip_folder
from .poller import DeploymentStatusPoller
from .settings import ProvisioningSettings
from .site_config import BotSiteSpec, validate_site_name, zip_deploy_endpoint
from .transport import DeploymentTransport, PublishingCredentials, TransportConfig
from .workflow import ProvisioningWorkflow

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bot-provisioning',
        description='Package and deploy a bot to its hosting site.',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    deploy = sub.add_parser('deploy', help='Zip a folder and deploy it.')
    deploy.add_argument('--site', required=True, help='Hosting site name.')
    deploy.add_argument('--folder', required=True, type=Path, help='Bot folder to package.')
    deploy.add_argument('--username', help='Publishing user name.')
    deploy.add_argument(
        '--password-env',
        default='BOT_PUBLISHING_PASSWORD',
        help='Environment variable holding the publishing password.',
    )
    deploy.add_argument('--retry-times', type=int, help='Override BOT_DEPLOY_RETRY_TIMES.')
    deploy.add_argument('--backoff', type=float, help='Override BOT_DEPLOY_BACKOFF_TIME_S.')
    deploy.add_argument(
        '--ignore',
        action='append',
        default=[],
        help='Extra fnmatch pattern to leave out of the package (repeatable).',
    )
    deploy.add_argument(
        '--dry-run',
        action='store_true',
        help='Run the full workflow against in-memory collaborators.',
    )
    return parser


def _settings_for(args: argparse.Namespace) -> ProvisioningSettings:
    settings = ProvisioningSettings.from_env()
    overrides: dict[str, object] = {}
    if args.retry_times is not None:
        overrides['deploy_retry_times'] = args.retry_times
    if args.backoff is not None:
        overrides['deploy_backoff_seconds'] = args.backoff
    if overrides:
        settings = replace(settings, **overrides)
    problems = settings.validate()
    if problems:
        raise ConfigurationError('; '.join(problems))
    return settings


async def _deploy(args: argparse.Namespace, settings: ProvisioningSettings, package: bytes) -> dict:
    password = os.environ.get(args.password_env, '')
    if not args.username or not password:
        raise ConfigurationError(
            f'--username and ${args.password_env} are required unless --dry-run is set'
        )
    credentials = PublishingCredentials(username=args.username, password=password)
    push_config = TransportConfig.for_credentials(
        credentials, timeout_seconds=settings.zip_deploy_timeout_seconds,
    )

    async with DeploymentTransport() as transport:
        executor = OperationExecutor(transport=transport)
        location = await executor.zip_deploy_package(
            zip_deploy_endpoint(args.site, settings.scm_domain_suffix),
            package,
            push_config,
        )
        poller: DeploymentStatusPoller = executor.build_status_poller(settings.retry_policy())
        poll = await poller.wait_for_completion(
            location, push_config.with_timeout(settings.http_timeout_seconds),
        )
    return {'state': poll.state.value, 'attempts': poll.attempts}


async def _dry_run(args: argparse.Namespace, settings: ProvisioningSettings, package: bytes) -> dict:
    transport = ScriptedTransport(polls=(202, 200))
    executor = OperationExecutor(
        bot_client=InMemoryBotServiceClient(),
        web_client=InMemoryWebSiteClient(),
        transport=transport,
    )
    workflow = ProvisioningWorkflow(
        executor=executor, settings=settings, sleep=RecordingSleep(),
    )
    spec = BotSiteSpec(
        resource_group='dry-run-rg',
        site_name=args.site,
        registration_name=args.site,
        app_id='00000000-0000-0000-0000-000000000000',
        app_password='dry-run',
        location='westus',
        server_farm_id=f'/dry-run/serverfarms/{args.site}',
    )
    result = await workflow.run(spec, package)
    return {
        'state': result.poll.state.value,
        'attempts': result.poll.attempts,
        'completed_steps': list(result.completed_steps),
        'endpoint': result.endpoint,
    }


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = _settings_for(args)
        configure_logging(
            level=settings.log_level,
            json_output=settings.log_format == 'json',
        )
        validate_site_name(args.site)
        package = zip_folder(args.folder, ignore=(*DEFAULT_IGNORES, *args.ignore))
        logger.info(
            'Built deployment package',
            extra={'body_bytes': len(package), 'sha256': package_digest(package)},
        )
        runner = _dry_run if args.dry_run else _deploy
        with bind_run_id():
            summary = asyncio.run(runner(args, settings, package))
    except ProvisioningError as exc:
        print(json.dumps(exc.to_payload()), file=sys.stderr)
        return 1
    except (ConfigurationError, ValueError) as exc:
        print(json.dumps({'code': 'ConfigurationError', 'message': str(exc)}), file=sys.stderr)
        return 2

    print(json.dumps(summary))
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
