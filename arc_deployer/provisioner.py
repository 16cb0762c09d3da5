"""
Contract creation in dependency order.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from web3 import Web3

from .config import DeployConfig
from .exceptions import FatalCallError, PreconditionError
from .models import ComponentHandle, Role
from .retry import execute

logger = logging.getLogger(__name__)

# Constructor argument placeholders, resolved at creation time
DEPLOYER = "deployer"
USDC = "usdc"

# (role, constructor arguments). A Role among the arguments stands for the
# address of that already created contract.
CREATION_PLAN: List[Tuple[Role, Tuple[Any, ...]]] = [
    (Role.JOB_REGISTRY, (DEPLOYER,)),
    (Role.REPUTATION_TOKEN, (DEPLOYER,)),
    (Role.ESCROW, (DEPLOYER, USDC, DEPLOYER)),
    (Role.ORDER_BOOK, (DEPLOYER, Role.JOB_REGISTRY)),
    (Role.AGENT_REGISTRY, (DEPLOYER,)),
]


def check_preconditions(usdc_address: Optional[str]) -> None:
    """
    Validate the external token address before anything is sent.

    Raises:
        PreconditionError: If the address is unset or malformed
    """
    if not usdc_address:
        raise PreconditionError("USDC_TOKEN_ADDRESS missing in env")
    if not Web3.is_address(usdc_address):
        raise PreconditionError(f"USDC_TOKEN_ADDRESS is not a valid address: {usdc_address}")


class ComponentProvisioner:
    """
    Creates the five contracts one after another.

    Each creation and its confirmation are retried independently, and a
    contract is only created once the previous one is mined.
    """

    def __init__(self, endpoint, config: DeployConfig, sleep: Optional[Callable[[float], Any]] = None):
        self.endpoint = endpoint
        self.config = config
        self._sleep = sleep

    def _pause(self, seconds: float) -> None:
        if seconds > 0:
            (self._sleep or time.sleep)(seconds)

    def _resolve_args(
        self,
        args: Tuple[Any, ...],
        deployer: str,
        usdc_address: str,
        handles: Dict[Role, ComponentHandle],
    ) -> List[Any]:
        resolved = []
        for arg in args:
            if isinstance(arg, Role):
                resolved.append(handles[arg].address)
            elif arg == DEPLOYER:
                resolved.append(deployer)
            elif arg == USDC:
                resolved.append(usdc_address)
            else:
                resolved.append(arg)
        return resolved

    def _retry(self, operation, label: str):
        return execute(
            operation,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            sleep=self._sleep,
            label=label,
        )

    def provision_one(self, role: Role, constructor_args: List[Any]) -> ComponentHandle:
        """
        Create one contract and wait for it to be mined.

        Raises:
            FatalCallError: With the role and the underlying cause attached
        """
        logger.info(f"Deploying {role.value}...")
        try:
            pending = self._retry(lambda: self.endpoint.create(role, constructor_args), f"deploy {role.value}")
            handle = self._retry(lambda: self.endpoint.confirm(pending), f"confirm {role.value}")
        except (FatalCallError, PreconditionError):
            raise
        except Exception as e:
            raise FatalCallError(f"Deploying {role.value} failed: {e}", role=role.value) from e
        logger.info(f"{role.value}: {handle.address}")
        return handle

    def provision_all(self, deployer: str, usdc_address: Optional[str]) -> Dict[Role, ComponentHandle]:
        """
        Create all five contracts in dependency order.

        Args:
            deployer: Address owning the contracts
            usdc_address: Address of the payment token used by Escrow

        Returns:
            Mapping of role to deployed contract

        Raises:
            PreconditionError: If usdc_address is missing, before any remote call
            FatalCallError: If a creation fails after retries
        """
        check_preconditions(usdc_address)

        handles: Dict[Role, ComponentHandle] = {}
        for index, (role, args) in enumerate(CREATION_PLAN):
            if index:
                self._pause(self.config.settle_delay)
            constructor_args = self._resolve_args(args, deployer, usdc_address, handles)
            handles[role] = self.provision_one(role, constructor_args)
        return handles
