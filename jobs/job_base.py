"""
Job runner base class.

Jobs are the only layer that turns failures into a JobResult: every
exception raised by the device client ends here as FAILURE, and the few
documented soft cases (unsupported certificate, alias collision, item that
could not be read...) are reported as WARNING.
"""

from abc import ABC
from typing import Callable, Optional

from entities.device_api_client import DeviceApiClient
from interfaces.orchestrator_interfaces import JobConfiguration, JobResult, JobStatus, PAMSecretResolver
from utils.logger import OrchestratorLogger

ClientFactory = Callable[[JobConfiguration], DeviceApiClient]


class JobRunner(ABC):
    """
    Common plumbing of the Inventory, Management and Reenrollment jobs.
    """

    job_name = "Job"

    def __init__(
        self,
        resolver: Optional[PAMSecretResolver] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Args:
            resolver: PAM secret resolver for the store credentials
            client_factory: builds the device client for a job configuration
                (default: DeviceApiClient.from_job_configuration)
        """
        self.resolver = resolver
        self.logger = OrchestratorLogger.get_logger(self.__class__.__name__)
        self._client_factory = client_factory

    def create_client(self, config: JobConfiguration) -> DeviceApiClient:
        self.logger.debug(f"Creating device client for {config.certificate_store_details.client_machine}")
        if self._client_factory is not None:
            return self._client_factory(config)
        return DeviceApiClient.from_job_configuration(config, resolver=self.resolver)

    @staticmethod
    def success(config: JobConfiguration) -> JobResult:
        return JobResult(JobStatus.SUCCESS, config.job_history_id)

    def warning(self, config: JobConfiguration, message: str) -> JobResult:
        self.logger.warning(message)
        return JobResult(JobStatus.WARNING, config.job_history_id, message)

    def failure(self, config: JobConfiguration, message: str) -> JobResult:
        self.logger.error(message)
        return JobResult(JobStatus.FAILURE, config.job_history_id, message)
