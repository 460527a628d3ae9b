"""
Error taxonomy of the orchestrator core.

Every failure raised by the trust verifier, the transport, the protocol
adapters or the device client is one of the classes below, so that a job can
tell "wrong device identity" from "API returned an error" from "network
unreachable" without parsing messages.

    ==============================  ==========================================
     Exception                       Raised when
    ==============================  ==========================================
    `TransportError`                 connection refused, timeout, DNS, TLS,
                                     non-2xx HTTP status
    `IdentityValidationError`        the device certificate was rejected
    `ApiLogicalError`                well-formed response signalling failure
    `ProtocolInvariantViolation`     response shape breaks an assumption
    `PolicyRejection`                local rule refused the call before any
                                     request was sent
    ==============================  ==========================================

Each class declares a ``format`` string; keyword arguments given to the
constructor fill it and are also exposed as attributes.
"""

from typing import Iterable, Optional


class OrchestratorError(Exception):
    """
    Base class for all classified orchestrator errors.
    """

    format = '%(detail)s'

    def __init__(self, **kw):
        self.operation = None
        self.kw = kw
        for (key, value) in kw.items():
            assert not hasattr(self, key), 'conflicting kwarg %s.%s = %r' % (
                self.__class__.__name__, key, value,
            )
            setattr(self, key, value)
        self.base_msg = self.format % kw
        self.msg = self.base_msg
        Exception.__init__(self, self.msg)

    @property
    def message(self):
        return str(self)

    def add_context(self, operation: str) -> "OrchestratorError":
        """
        Attaches the name of the failing operation to the error.

        The class, the keyword attributes and ``__cause__`` are preserved so
        callers can still classify the failure.

        Args:
            operation: name of the device client call that failed

        Returns:
            self, for ``raise err.add_context(...)``
        """
        if self.operation is None:
            self.operation = operation
            self.msg = f"{operation} failed: {self.base_msg}"
            self.args = (self.msg,)
        return self

    def __str__(self):
        return self.msg


class TransportError(OrchestratorError):
    """
    HTTP transport failure: no usable response or a non-2xx status.

    >>> str(TransportError(status_code=404, diagnostic='Not Found! (404)'))
    'HTTP request unsuccessful - Not Found! (404)'
    """

    format = 'HTTP request unsuccessful - %(diagnostic)s'

    def __init__(self, diagnostic: str, status_code: Optional[int] = None):
        super().__init__(diagnostic=diagnostic, status_code=status_code)


class IdentityValidationError(OrchestratorError):
    """
    Device identity could not be verified; carries every reason collected.
    """

    format = 'Device identity could not be verified successfully --- %(summary)s'

    def __init__(self, reasons: Iterable[str]):
        reasons = list(reasons) or ['no reason reported']
        super().__init__(reasons=reasons, summary='; '.join(reasons))


class ApiLogicalError(OrchestratorError):
    """
    The device answered with a well-formed error envelope.

    ``code`` and ``message_text`` hold the protocol-native values unchanged.
    """

    format = '%(api)s API error encountered - %(message_text)s - (Code: %(code)s)'

    def __init__(self, api: str, code, message_text: str, detail: Optional[str] = None):
        super().__init__(api=api, code=code, message_text=message_text, detail=detail)


class ProtocolInvariantViolation(OrchestratorError):
    """
    The response violates an assumption about the protocol (malformed
    envelope, empty body, duplicated binding element...).
    """

    format = 'Protocol invariant violated: %(detail)s'

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class PolicyRejection(OrchestratorError):
    """
    Local business rule rejected the operation; nothing was sent to the device.
    """

    format = 'Operation rejected: %(reason)s'

    def __init__(self, reason: str):
        super().__init__(reason=reason)

