"""Bot provisioning: registration, hosting site and package deployment orchestration."""

from .errors import (
    ConfigUpdatingError,
    ConfigurationError,
    DeployStatusError,
    DeployTimeoutError,
    ListPublishingCredentialsError,
    MessageEndpointUpdatingError,
    PackagingError,
    ProvisionError,
    ProvisioningError,
    RestartWebAppError,
    ZipDeployError,
)
from .http_status import HttpStatusClass, classify_response, classify_status
from .operations import OperationExecutor, attempt
from .poller import (
    DeploymentStatusPoller,
    DeployState,
    PollResult,
    RetryPolicy,
)
from .settings import ProvisioningSettings
from .site_config import BotSiteSpec
from .transport import DeploymentTransport, PublishingCredentials, TransportConfig
from .workflow import WORKFLOW_STEPS, ProvisioningWorkflow, WorkflowResult

__all__ = [
    'BotSiteSpec',
    'ConfigUpdatingError',
    'ConfigurationError',
    'DeployState',
    'DeployStatusError',
    'DeployTimeoutError',
    'DeploymentStatusPoller',
    'DeploymentTransport',
    'HttpStatusClass',
    'ListPublishingCredentialsError',
    'MessageEndpointUpdatingError',
    'OperationExecutor',
    'PackagingError',
    'PollResult',
    'ProvisionError',
    'ProvisioningError',
    'ProvisioningSettings',
    'ProvisioningWorkflow',
    'PublishingCredentials',
    'RestartWebAppError',
    'RetryPolicy',
    'TransportConfig',
    'WORKFLOW_STEPS',
    'WorkflowResult',
    'ZipDeployError',
    'attempt',
    'classify_response',
    'classify_status',
]
