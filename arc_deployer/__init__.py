"""
arc-deployer - provisions and wires the marketplace contracts on an EVM chain.
"""
from .version import __version__
from .models import (
    Role, FeeOverride, FeeSuggestion, NetworkInfo, ComponentHandle,
    DeploymentRecord, RecordPaths,
)
from .exceptions import (
    DeployerError, TransientEndpointError, FatalCallError,
    PreconditionError, PersistenceError, RetriesExhaustedError,
)
from .config import DeployConfig, NetworkConfig
from .retry import execute, classify_error
from .fees import compute_override
from .provisioner import ComponentProvisioner, CREATION_PLAN
from .wiring import WiringCoordinator, WiringStep, WIRING_PLAN
from .recorder import DeploymentRecorder, sanitize_timestamp
from .endpoint import Endpoint, ArtifactStore
from .orchestrator import DeploymentOrchestrator, DeploymentResult

__all__ = [
    "__version__",
    "Role",
    "FeeOverride",
    "FeeSuggestion",
    "NetworkInfo",
    "ComponentHandle",
    "DeploymentRecord",
    "RecordPaths",
    "DeployerError",
    "TransientEndpointError",
    "FatalCallError",
    "PreconditionError",
    "PersistenceError",
    "RetriesExhaustedError",
    "DeployConfig",
    "NetworkConfig",
    "execute",
    "classify_error",
    "compute_override",
    "ComponentProvisioner",
    "CREATION_PLAN",
    "WiringCoordinator",
    "WiringStep",
    "WIRING_PLAN",
    "DeploymentRecorder",
    "sanitize_timestamp",
    "Endpoint",
    "ArtifactStore",
    "DeploymentOrchestrator",
    "DeploymentResult",
]
