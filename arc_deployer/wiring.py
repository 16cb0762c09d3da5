"""
Cross-reference wiring between deployed contracts.

All setters are sent from the same account, so they are issued strictly one
at a time: a call is mined (or has failed for good) before the next is sent.
Sending them concurrently risks nonce collisions on the endpoint.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .config import DeployConfig
from .exceptions import FatalCallError, PreconditionError
from .models import ComponentHandle, FeeOverride, Role
from .retry import execute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WiringStep:
    """``target.method(address of argument)``"""
    target: Role
    method: str
    argument: Role

    @property
    def name(self) -> str:
        return f"{self.target.value}.{self.method}({self.argument.value})"


WIRING_PLAN: List[WiringStep] = [
    WiringStep(Role.JOB_REGISTRY, "setOrderBook", Role.ORDER_BOOK),
    WiringStep(Role.ESCROW, "setOrderBook", Role.ORDER_BOOK),
    WiringStep(Role.ESCROW, "setReputation", Role.REPUTATION_TOKEN),
    WiringStep(Role.REPUTATION_TOKEN, "setEscrow", Role.ESCROW),
    WiringStep(Role.REPUTATION_TOKEN, "setAgentRegistry", Role.AGENT_REGISTRY),
    WiringStep(Role.AGENT_REGISTRY, "setReputationOracle", Role.REPUTATION_TOKEN),
    WiringStep(Role.ORDER_BOOK, "setEscrow", Role.ESCROW),
    WiringStep(Role.ORDER_BOOK, "setReputationToken", Role.REPUTATION_TOKEN),
    WiringStep(Role.ORDER_BOOK, "setAgentRegistry", Role.AGENT_REGISTRY),
]


class WiringCoordinator:
    """Issues the wiring plan sequentially, retrying each call on its own"""

    def __init__(self, endpoint, config: DeployConfig, sleep: Optional[Callable[[float], Any]] = None):
        self.endpoint = endpoint
        self.config = config
        self._sleep = sleep

    def _retry(self, operation, label: str):
        return execute(
            operation,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            sleep=self._sleep,
            label=label,
        )

    def wire_one(self, step: WiringStep, handles: Dict[Role, ComponentHandle],
                 fee_override: Optional[FeeOverride]) -> None:
        """
        Send one setter and wait for it to be mined.

        Raises:
            FatalCallError: Naming the step, with the underlying cause attached
        """
        target = handles[step.target]
        argument = handles[step.argument].address
        logger.info(f"Setting {step.argument.value} in {step.target.value}...")
        try:
            # A resend after a lost response repeats the setter under a new nonce; setters are idempotent
            pending = self._retry(
                lambda: self.endpoint.invoke(target, step.method, [argument], fee_override),
                step.name,
            )
            self._retry(lambda: self.endpoint.confirm_call(pending), f"confirm {step.name}")
        except (FatalCallError, PreconditionError):
            raise
        except Exception as e:
            raise FatalCallError(
                f"Wiring {step.name} failed: {e}", role=step.target.value, step=step.method
            ) from e

    def wire_all(self, handles: Dict[Role, ComponentHandle], fee_override: Optional[FeeOverride]) -> None:
        """
        Apply every step of WIRING_PLAN in order.

        A failing step aborts the sequence; steps already applied stay applied.
        """
        logger.info("Wiring contracts together...")
        for step in WIRING_PLAN:
            self.wire_one(step, handles, fee_override)
            if self.config.settle_delay > 0:
                (self._sleep or time.sleep)(self.config.settle_delay)
