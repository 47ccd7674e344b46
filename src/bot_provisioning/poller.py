"""Deployment status poller: bounded fixed-backoff wait on a pending deploy.

State machine for one deployment location::

    pending -> pending      (202 Accepted: sleep, consume one attempt)
    pending -> succeeded    (200/201)
    pending -> failed       (any other status, or the poll call raised)
    pending -> timed_out    (attempts exhausted while still pending)

Transport errors are never retried: they mean the poll channel itself is
broken, not that the deployment is still running. Worst-case wait is
``max_attempts * backoff_seconds``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ConfigurationError, DeployStatusError, DeployTimeoutError
from .http_status import HttpStatusClass, classify_status, status_code_of
from .protocols import HttpTransport, SleepFn

logger = logging.getLogger(__name__)

DEFAULT_RETRY_TIMES = 120
DEFAULT_BACKOFF_TIME_S = 10.0


class DeployState(str, Enum):
    PENDING = 'pending'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    TIMED_OUT = 'timed_out'


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Fixed retry ceiling and fixed delay between status polls."""

    max_attempts: int = DEFAULT_RETRY_TIMES
    backoff_seconds: float = DEFAULT_BACKOFF_TIME_S

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ConfigurationError('max_attempts must be an integer')
        if self.max_attempts < 1:
            raise ConfigurationError('max_attempts must be >= 1')
        if self.backoff_seconds < 0:
            raise ConfigurationError('backoff_seconds must be >= 0')

    @property
    def worst_case_wait_seconds(self) -> float:
        return self.max_attempts * self.backoff_seconds


@dataclass(frozen=True, slots=True)
class PollResult:
    """Terminal outcome of a successful status wait."""

    state: DeployState
    attempts: int
    location: str


class DeploymentStatusPoller:
    """Polls one deployment location until it completes, fails, or times out.

    The transport is the same instance the package push used; ``sleep`` is
    injectable so tests can count backoff waits without waiting.
    """

    def __init__(
        self,
        transport: HttpTransport,
        policy: RetryPolicy,
        *,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._policy = policy
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def wait_for_completion(self, location: str, config: Any) -> PollResult:
        """Block (cooperatively) until the deployment at *location* settles.

        Returns a succeeded ``PollResult``.

        Raises:
            DeployStatusError: The poll call raised (with inner error), or
                returned a status that is neither success nor pending
                (without inner error).
            DeployTimeoutError: Every attempt came back pending.
        """
        max_attempts = self._policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                response = await self._transport.get(location, config)
            except Exception as exc:
                logger.warning(
                    'Deployment status poll raised on attempt %d/%d: %s',
                    attempt,
                    max_attempts,
                    type(exc).__name__,
                    extra={'attempt': attempt, 'deploy_state': DeployState.FAILED.value},
                )
                raise DeployStatusError(exc) from exc

            status_code = status_code_of(response)
            status_class = classify_status(status_code)

            if status_class is HttpStatusClass.ACCEPTED:
                logger.info(
                    'Deployment still pending (attempt %d/%d), retrying in %.1fs',
                    attempt,
                    max_attempts,
                    self._policy.backoff_seconds,
                    extra={
                        'attempt': attempt,
                        'status_code': status_code,
                        'deploy_state': DeployState.PENDING.value,
                    },
                )
                await self._sleep(self._policy.backoff_seconds)
                continue

            if status_class is HttpStatusClass.OK_OR_CREATED:
                logger.info(
                    'Deployment succeeded after %d attempt(s)',
                    attempt,
                    extra={
                        'attempt': attempt,
                        'status_code': status_code,
                        'deploy_state': DeployState.SUCCEEDED.value,
                    },
                )
                return PollResult(
                    state=DeployState.SUCCEEDED,
                    attempts=attempt,
                    location=location,
                )

            logger.warning(
                'Deployment failed with status %s on attempt %d/%d',
                status_code,
                attempt,
                max_attempts,
                extra={
                    'attempt': attempt,
                    'status_code': status_code,
                    'deploy_state': DeployState.FAILED.value,
                },
            )
            raise DeployStatusError()

        logger.warning(
            'Deployment still pending after %d attempts',
            max_attempts,
            extra={
                'attempt': max_attempts,
                'deploy_state': DeployState.TIMED_OUT.value,
            },
        )
        raise DeployTimeoutError()
