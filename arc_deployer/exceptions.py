"""
Exceptions for the arc deployer.
"""
from typing import Any, Optional


class DeployerError(Exception):
    """Base exception for deployment errors."""
    pass


class TransientEndpointError(DeployerError):
    """Raised when the endpoint fails in a way that is worth retrying (rate limit, reset, timeout)."""
    pass


class FatalCallError(DeployerError):
    """Raised when a remote call fails and must not be retried."""

    def __init__(self, message: str, role: Optional[str] = None, step: Optional[str] = None):
        self.role = role
        self.step = step
        super().__init__(message)


class PreconditionError(DeployerError):
    """Raised when required configuration is missing or invalid before any remote call."""
    pass


class PersistenceError(DeployerError):
    """
    Raised when the deployment record could not be written.

    The contracts are already deployed and wired at this point; ``record``
    holds the addresses so they are not lost.
    """

    def __init__(self, message: str, record: Optional[Any] = None):
        self.record = record
        super().__init__(message)


class RetriesExhaustedError(DeployerError):
    """Raised when the retry budget was spent without observing an error to re-raise."""
    pass
