"""Typed error hierarchy for bot provisioning operations.

Every remote step maps its failures onto exactly one error class below.
Errors raised because the collaborator call itself failed carry the
original exception as ``inner_error`` (and as ``__cause__``); errors raised
because the response had the wrong status carry no inner error.

Messages are safe to surface to callers: they never include credentials,
request bodies, or authorization headers.
"""

from __future__ import annotations

from typing import Any, Literal

ErrorType = Literal['user', 'system']

MS_TEAMS_CHANNEL = 'MsTeamsChannel'
AZURE_WEB_APP = 'Azure Web App'
AZURE_WEB_APP_AUTH_CONFIGS = "Azure Web App's auth configs"

_RETRY_LATER = 'Please retry the command later.'
_CHECK_LOGS = 'Check the log output for the underlying error.'


class ProvisioningError(Exception):
    """Base error for every provisioning and deployment step."""

    code = 'ProvisioningError'
    error_type: ErrorType = 'system'
    suggestions: tuple[str, ...] = (_RETRY_LATER,)

    def __init__(
        self,
        message: str,
        inner_error: BaseException | None = None,
    ) -> None:
        self.message = message
        self.inner_error = inner_error
        super().__init__(message)

    def __repr__(self) -> str:
        parts = [f'{type(self).__name__}({self.message!r}']
        if self.inner_error is not None:
            parts.append(f'inner_error={self.inner_error!r}')
        return ', '.join(parts) + ')'

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe summary for CLI output and structured logs."""
        payload: dict[str, Any] = {
            'code': self.code,
            'message': self.message,
            'error_type': self.error_type,
            'suggestions': list(self.suggestions),
        }
        if self.inner_error is not None:
            payload['inner_error'] = {
                'type': type(self.inner_error).__name__,
                'detail': str(self.inner_error),
            }
        return payload


class MessageEndpointUpdatingError(ProvisioningError):
    """Updating the bot registration's messaging endpoint failed."""

    code = 'MessageEndpointUpdatingError'

    def __init__(
        self,
        endpoint: str,
        inner_error: BaseException | None = None,
    ) -> None:
        self.endpoint = endpoint
        super().__init__(
            f'Failed to update message endpoint with {endpoint}.',
            inner_error,
        )


class ProvisionError(ProvisioningError):
    """Creating a named resource failed."""

    code = 'ProvisionError'

    def __init__(
        self,
        resource_name: str,
        inner_error: BaseException | None = None,
    ) -> None:
        self.resource_name = resource_name
        super().__init__(f'Failed to provision {resource_name}.', inner_error)


class ConfigUpdatingError(ProvisioningError):
    """Updating a named configuration on an existing resource failed."""

    code = 'ConfigUpdatingError'

    def __init__(
        self,
        config_name: str,
        inner_error: BaseException | None = None,
    ) -> None:
        self.config_name = config_name
        super().__init__(f'Failed to update {config_name}.', inner_error)


class ListPublishingCredentialsError(ProvisioningError):
    code = 'ListPublishingCredentialsError'

    def __init__(self, inner_error: BaseException | None = None) -> None:
        super().__init__('Failed to list publishing credentials.', inner_error)


class ZipDeployError(ProvisioningError):
    code = 'ZipDeployError'
    suggestions = (_RETRY_LATER, _CHECK_LOGS)

    def __init__(self, inner_error: BaseException | None = None) -> None:
        super().__init__('Failed to deploy zip package.', inner_error)


class DeployStatusError(ProvisioningError):
    """A status poll failed or reported a non-success, non-pending code."""

    code = 'DeployStatusError'
    suggestions = (_RETRY_LATER, _CHECK_LOGS)

    def __init__(self, inner_error: BaseException | None = None) -> None:
        super().__init__('Failed to check deployment status.', inner_error)


class DeployTimeoutError(ProvisioningError):
    code = 'DeployTimeoutError'

    def __init__(self, inner_error: BaseException | None = None) -> None:
        super().__init__('Checking deployment status timed out.', inner_error)


class RestartWebAppError(ProvisioningError):
    code = 'RestartWebAppError'

    def __init__(self, inner_error: BaseException | None = None) -> None:
        super().__init__('Failed to restart web app.', inner_error)


class PackagingError(ProvisioningError):
    """The deployment package could not be built from the local folder."""

    code = 'PackagingError'
    error_type: ErrorType = 'user'
    suggestions = ('Check that the folder exists and is not empty.',)


class ConfigurationError(ValueError):
    """Raised for invalid settings or retry policy values."""
