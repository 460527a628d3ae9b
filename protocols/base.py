"""
Protocol adapter contract.

Each Axis management API (REST, SOAP, CGI) is wrapped by an adapter that
builds its requests, sends them through the device transport and decodes the
response envelope. Errors are classified the same way for the three APIs:

- no usable response or non-2xx status -> TransportError
- empty body on a 2xx response -> ProtocolInvariantViolation
- malformed body or envelope -> ProtocolInvariantViolation
- well-formed failure envelope -> ApiLogicalError

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

from abc import ABC, abstractmethod
from typing import Optional

from protocols.core.types import ApiEnvelope, ApiType, HttpMethod, NormalizedResponse
from utils.errors import ApiLogicalError, PolicyRejection, ProtocolInvariantViolation, TransportError
from utils.logger import OrchestratorLogger

NO_RESPONSE_DIAGNOSTIC = (
    "No response received! Possible causes: Timeouts, no network connectivity, "
    "DNS resolution failure, SSL issues, firewall configuration, etc."
)

_HTTP_STATUS_TEXT = {
    400: "Bad Request! (400)",
    401: "Unauthorized! (401)",
    403: "Forbidden! (403)",
    404: "Not Found! (404)",
    500: "Internal Server Error! (500)",
}


def decode_http_status(status_code: Optional[int], error_message: Optional[str] = None) -> str:
    """
    Turns an HTTP status (or the lack of one) into a human-readable diagnostic.

    Args:
        status_code: HTTP status, None when no response was received
        error_message: low-level error text (timeout, DNS, TLS...)

    Returns:
        Diagnostic string

    Example:
        >>> decode_http_status(401)
        'Unauthorized! (401)'
    """
    text = _HTTP_STATUS_TEXT.get(status_code)
    if text:
        return text

    text = NO_RESPONSE_DIAGNOSTIC
    if status_code is not None:
        text += f"\nHTTP status: {status_code}"
    if error_message:
        text += f"\nError message: {error_message}"
    return text


class ProtocolAdapter(ABC):
    """
    Base class of the three API adapters.

    Subclasses set ``api_type``, ``entry_point`` and ``content_type`` and
    implement ``decode``.
    """

    api_type: ApiType
    entry_point: str
    content_type: str = "application/json"

    def __init__(self, transport, logger=None):
        """
        Args:
            transport: object exposing ``request(method, path, body, content_type)``
                returning a NormalizedResponse (normally a DeviceTransport)
            logger: optional logger
        """
        self.transport = transport
        self.logger = logger or OrchestratorLogger.get_logger(self.__class__.__name__)

    @abstractmethod
    def decode(self, raw: str) -> ApiEnvelope:
        """
        Decodes a response body into the common envelope.

        Raises:
            ProtocolInvariantViolation: If the body cannot be parsed
        """
        pass

    def execute(
        self, operation: str, resource: str, method: HttpMethod, body: Optional[str] = None
    ) -> NormalizedResponse:
        """
        Sends one request to the adapter's entry point.

        Args:
            operation: name of the calling operation (for logs)
            resource: path relative to the entry point ("" for the entry point itself)
            method: HTTP method
            body: request body (required for POST and PATCH)

        Returns:
            NormalizedResponse

        Raises:
            PolicyRejection: If a POST/PATCH body is empty
            TransportError: If no response was received
        """
        if method in (HttpMethod.POST, HttpMethod.PATCH) and not body:
            kind = "XML" if self.api_type is ApiType.SOAP else "JSON"
            raise PolicyRejection(f"{kind} body is null or empty.")

        path = f"{self.entry_point}/{resource}" if resource else self.entry_point
        self.logger.debug(f"[{operation}] {method.value} {path}")
        if body:
            self.logger.debug(f"[{operation}] Request body: {body}")

        response = self.transport.request(method, path, body=body, content_type=self.content_type)

        self.logger.debug(f"[{operation}] HTTP response ({response.status_code}): {response.raw}")
        return response

    def invoke(
        self, operation: str, resource: str, method: HttpMethod, body: Optional[str] = None
    ) -> ApiEnvelope:
        """
        Executes a request and decodes it, raising the classified error on failure.

        Returns:
            Successful ApiEnvelope

        Raises:
            TransportError: non-2xx status or no response
            ProtocolInvariantViolation: empty or malformed body
            ApiLogicalError: failure envelope
        """
        response = self.execute(operation, resource, method, body)

        if not response.ok:
            diagnostic = decode_http_status(response.status_code, response.reason)
            self.logger.error(f"HTTP request unsuccessful - HTTP response: {diagnostic}")
            raise TransportError(diagnostic, status_code=response.status_code)

        if not response.raw or not response.raw.strip():
            raise ProtocolInvariantViolation("No content returned from HTTP response")

        envelope = self.decode(response.raw)
        if not envelope.ok:
            self.logger.debug(f"{self.api_type.value} API returned an error")
            raise ApiLogicalError(
                self.api_type.value, envelope.error_code, envelope.error_message, envelope.detail
            )

        self.logger.debug(f"{self.api_type.value} API returned success")
        return envelope
