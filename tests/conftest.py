"""
Pytest fixtures for the arc deployer tests.
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from web3 import Web3

from arc_deployer.config import DeployConfig
from arc_deployer.models import (
    ComponentHandle, FeeSuggestion, NetworkInfo, PendingCall, PendingDeployment, Role,
)

TEST_RPC_URL = "http://127.0.0.1:8545"
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_DEPLOYER = "0x1234567890123456789012345678901234567890"
TEST_USDC = "0x3600000000000000000000000000000000000000"
TEST_CHAIN_ID = 421613


# Make time.sleep instantaneous so retries don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


class SleepRecorder:
    """Sleep replacement that remembers every requested delay"""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeEndpoint:
    """
    Call-counting stand-in for arc_deployer.endpoint.Endpoint.

    Every call is appended to ``calls``. Failures are injected per call key
    ("create:Escrow", "invoke:OrderBook.setEscrow", "confirm_call:...",
    "get_network_info", ...): ``fail(key, *errors)`` raises the errors on
    successive calls, ``fail_always(key, error)`` raises on every call.
    """

    def __init__(self, chain_id: int = TEST_CHAIN_ID, network_name: str = "arc",
                 suggestion: Optional[FeeSuggestion] = None):
        self.calls: List[tuple] = []
        self.chain_id = chain_id
        self.network_name = network_name
        self.suggestion = suggestion
        self._queued: Dict[str, List[BaseException]] = {}
        self._always: Dict[str, BaseException] = {}
        self._counter = 0
        self.deployer = Web3.to_checksum_address(TEST_DEPLOYER)

    def fail(self, key: str, *errors: BaseException) -> None:
        self._queued.setdefault(key, []).extend(errors)

    def fail_always(self, key: str, error: BaseException) -> None:
        self._always[key] = error

    def _maybe_fail(self, key: str) -> None:
        if key in self._always:
            raise self._always[key]
        queued = self._queued.get(key)
        if queued:
            raise queued.pop(0)

    def _next_address(self) -> str:
        self._counter += 1
        return Web3.to_checksum_address(f"0x{self._counter:040x}")

    def preflight(self) -> None:
        self.calls.append(("preflight",))
        self._maybe_fail("preflight")

    def get_network_info(self) -> NetworkInfo:
        self.calls.append(("get_network_info",))
        self._maybe_fail("get_network_info")
        return NetworkInfo(name=self.network_name, chain_id=self.chain_id)

    def get_fee_suggestion(self) -> Optional[FeeSuggestion]:
        self.calls.append(("get_fee_suggestion",))
        self._maybe_fail("get_fee_suggestion")
        return self.suggestion

    def create(self, role: Role, constructor_args) -> PendingDeployment:
        self.calls.append(("create", role, list(constructor_args)))
        self._maybe_fail(f"create:{role.value}")
        return PendingDeployment(role=role, tx_hash=f"0x{len(self.calls):064x}")

    def confirm(self, pending: PendingDeployment) -> ComponentHandle:
        self.calls.append(("confirm", pending.role))
        self._maybe_fail(f"confirm:{pending.role.value}")
        return ComponentHandle(
            role=pending.role,
            address=self._next_address(),
            created_at=datetime.now(timezone.utc),
            tx_hash=pending.tx_hash,
        )

    def invoke(self, handle: ComponentHandle, method: str, args, fee_override=None) -> PendingCall:
        self.calls.append(("invoke", handle.role, method, list(args), fee_override))
        self._maybe_fail(f"invoke:{handle.role.value}.{method}")
        return PendingCall(target=handle.role, method=method, tx_hash=f"0x{len(self.calls):064x}")

    def confirm_call(self, pending: PendingCall) -> None:
        self.calls.append(("confirm_call", pending.target, pending.method))
        self._maybe_fail(f"confirm_call:{pending.target.value}.{pending.method}")

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_endpoint():
    return FakeEndpoint(suggestion=FeeSuggestion(max_fee_per_gas=100, max_priority_fee_per_gas=10))


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def deploy_config(tmp_path):
    """Config with the default retry budget and no settling delay"""
    return DeployConfig(
        rpc_url=TEST_RPC_URL,
        private_key=TEST_PRIV_KEY,
        usdc_address=TEST_USDC,
        expected_chain_id=TEST_CHAIN_ID,
        settle_delay=0,
        deployments_dir=tmp_path / "deployments",
        artifacts_dir=tmp_path / "artifacts",
    )


def make_handles() -> Dict[Role, ComponentHandle]:
    """Five handles with predictable addresses (0x...01 to 0x...05)"""
    now = datetime(2025, 1, 31, 12, 0, tzinfo=timezone.utc)
    return {
        role: ComponentHandle(
            role=role,
            address=Web3.to_checksum_address(f"0x{index:040x}"),
            created_at=now,
        )
        for index, role in enumerate(Role, start=1)
    }
