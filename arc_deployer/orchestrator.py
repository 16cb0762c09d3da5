"""
DeploymentOrchestrator - runs a complete deployment.

Provision the five contracts, compute the fee override, wire the contracts
together and record the result. Any unrecovered error aborts the run; nothing
already deployed or wired is rolled back, and a re-run deploys fresh
contracts.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .config import DeployConfig, validate_gwei
from .exceptions import PreconditionError
from .fees import compute_override
from .models import ComponentHandle, FeeOverride, NetworkInfo, RecordPaths, Role
from .provisioner import ComponentProvisioner, check_preconditions
from .recorder import DeploymentRecorder
from .retry import execute
from .wiring import WiringCoordinator

logger = logging.getLogger(__name__)


@dataclass
class DeploymentResult:
    network: NetworkInfo
    deployer: str
    handles: Dict[Role, ComponentHandle]
    fee_override: Optional[FeeOverride]
    paths: RecordPaths

    @property
    def addresses(self) -> Dict[str, str]:
        return {role.value: handle.address for role, handle in self.handles.items()}


class DeploymentOrchestrator:
    """
    Ties provisioning, wiring and recording together for one run.

    Args:
        config: Settings for the run
        endpoint: Remote endpoint (see arc_deployer.endpoint.Endpoint)
        recorder: Recorder for the result (defaults to one built from config)
        sleep: Sleep function used for backoff and settling delays
    """

    def __init__(
        self,
        config: DeployConfig,
        endpoint,
        recorder: Optional[DeploymentRecorder] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        self.config = config
        self.endpoint = endpoint
        self.recorder = recorder or DeploymentRecorder(config.deployments_dir, prefix=config.record_prefix)
        self.provisioner = ComponentProvisioner(endpoint, config, sleep=sleep)
        self.wiring = WiringCoordinator(endpoint, config, sleep=sleep)
        self._sleep = sleep

    def _network_info(self) -> NetworkInfo:
        network = execute(
            self.endpoint.get_network_info,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            sleep=self._sleep,
            label="get network",
        )
        expected = self.config.expected_chain_id
        if expected is not None and network.chain_id != expected:
            raise PreconditionError(
                f"Endpoint reports chain id {network.chain_id}, expected {expected}"
            )
        return network

    def _explicit_override(self) -> Optional[FeeOverride]:
        if self.config.tx_gwei is None:
            return None
        try:
            return compute_override(validate_gwei(self.config.tx_gwei))
        except (ValueError, ArithmeticError) as e:
            raise PreconditionError(f"Invalid ARC_TX_GWEI {self.config.tx_gwei!r}: {e}")

    def _suggested_override(self) -> Optional[FeeOverride]:
        try:
            suggestion = self.endpoint.get_fee_suggestion()
        except Exception as e:
            logger.warning(f"Fee data unavailable, using network default fees: {e}")
            suggestion = None
        return compute_override(None, suggestion)

    def run(self) -> DeploymentResult:
        """
        Execute the deployment.

        Returns:
            DeploymentResult with the deployed addresses and record paths

        Raises:
            PreconditionError: Before any remote call if configuration is invalid
            FatalCallError: If a creation or wiring call fails for good
            PersistenceError: If everything is deployed but the record could not be written
        """
        check_preconditions(self.config.usdc_address)
        explicit_override = self._explicit_override()
        self.endpoint.preflight()

        network = self._network_info()
        deployer = self.endpoint.deployer
        logger.info(f"Deploying to chain {network.chain_id} with {deployer}")

        handles = self.provisioner.provision_all(deployer, self.config.usdc_address)

        fee_override = explicit_override if explicit_override is not None else self._suggested_override()
        if fee_override:
            logger.info(
                f"Using fee override maxFeePerGas={fee_override.max_fee_per_gas} "
                f"maxPriorityFeePerGas={fee_override.max_priority_fee_per_gas}"
            )

        self.wiring.wire_all(handles, fee_override)

        paths = self.recorder.record(
            handles,
            network_name=network.name,
            chain_id=network.chain_id,
            deployer=deployer,
            usdc_address=self.config.usdc_address,
        )
        return DeploymentResult(
            network=network,
            deployer=deployer,
            handles=handles,
            fee_override=fee_override,
            paths=paths,
        )
