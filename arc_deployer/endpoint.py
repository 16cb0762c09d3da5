"""
web3.py binding of the remote endpoint used by the orchestrator.

The orchestrator only needs a handful of calls: create a contract, wait for
it, call a setter, wait for that, and read fee/network data. ``Endpoint``
implements them against a JSON-RPC node with a locally held key.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .config import DeployConfig, NetworkConfig
from .exceptions import FatalCallError, PreconditionError
from .fees import fetch_fee_suggestion
from .models import (
    ComponentHandle, FeeOverride, FeeSuggestion, NetworkInfo,
    PendingCall, PendingDeployment, Role,
)

logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    Reads contract ABI and bytecode from Hardhat build artifacts.

    Artifacts live at ``<root>/contracts/<Name>.sol/<Name>.json``; any other
    ``<Name>.json`` under the root is accepted as a fallback.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._cache: Dict[str, Tuple[List[Dict[str, Any]], str]] = {}

    def _find(self, name: str) -> Path:
        path = self.root / "contracts" / f"{name}.sol" / f"{name}.json"
        if path.is_file():
            return path
        matches = sorted(self.root.rglob(f"{name}.json"))
        if matches:
            return matches[0]
        raise PreconditionError(
            f"No build artifact for {name} under {self.root} (run `npx hardhat compile` first)"
        )

    def load(self, name: str) -> Tuple[List[Dict[str, Any]], str]:
        """
        Return (abi, bytecode) for a contract.

        Raises:
            PreconditionError: If the artifact is missing or malformed
        """
        if name not in self._cache:
            path = self._find(name)
            try:
                with open(path, "r", encoding="utf-8") as f:
                    artifact = json.load(f)
                self._cache[name] = (artifact["abi"], artifact["bytecode"])
            except (OSError, ValueError, KeyError) as e:
                raise PreconditionError(f"Invalid build artifact {path}: {e}")
            logger.debug(f"Loaded artifact for {name} from {path}")
        return self._cache[name]


class Endpoint:
    """
    Remote endpoint for contract creation and setter calls.

    Every method performs exactly one logical remote operation and lets
    transport errors propagate; retrying is the caller's job.
    """

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        artifacts: ArtifactStore,
        receipt_timeout: float = 120,
        poll_interval: float = 0.5,
    ):
        self.w3 = w3
        self.account = account
        self.artifacts = artifacts
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval

    @classmethod
    def from_config(cls, config: DeployConfig) -> "Endpoint":
        """
        Connect to the endpoint described by ``config``.

        web3's own HTTP retries are disabled so that retry.execute is the
        only retry policy in play.
        """
        provider = Web3.HTTPProvider(
            config.rpc_url,
            request_kwargs={"timeout": 30},
            exception_retry_configuration=None,
        )
        try:
            account = Account.from_key(config.private_key)
        except Exception as e:
            raise PreconditionError(f"Invalid ARC_PRIVATE_KEY: {e}")
        return cls(
            Web3(provider),
            account,
            ArtifactStore(config.artifacts_dir),
            receipt_timeout=config.receipt_timeout,
            poll_interval=config.poll_interval,
        )

    def preflight(self) -> None:
        """
        Load the build artifact of every role before anything is sent.

        Raises:
            PreconditionError: If any artifact is missing or malformed
        """
        for role in Role:
            self.artifacts.load(role.value)

    @property
    def deployer(self) -> str:
        return self.account.address

    def get_network_info(self) -> NetworkInfo:
        chain_id = int(self.w3.eth.chain_id)
        return NetworkInfo(name=NetworkConfig.name_for_chain_id(chain_id) or "unknown", chain_id=chain_id)

    def get_fee_suggestion(self) -> Optional[FeeSuggestion]:
        return fetch_fee_suggestion(self.w3)

    def _tx_params(self, fee_override: Optional[FeeOverride] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "from": self.account.address,
            "nonce": self.w3.eth.get_transaction_count(self.account.address, "pending"),
        }
        if fee_override is not None:
            params.update(fee_override.as_tx_params())
        return params

    def _sign_and_send(self, tx: Dict[str, Any]) -> str:
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    def _wait(self, tx_hash: str) -> Any:
        return self.w3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self.receipt_timeout,
            poll_latency=self.poll_interval,
        )

    def create(self, role: Role, constructor_args: Sequence[Any]) -> PendingDeployment:
        """Send the creation transaction for ``role``."""
        abi, bytecode = self.artifacts.load(role.value)
        factory = self.w3.eth.contract(abi=abi, bytecode=bytecode)
        tx = factory.constructor(*constructor_args).build_transaction(self._tx_params())
        tx_hash = self._sign_and_send(tx)
        logger.debug(f"{role.value} creation sent: {tx_hash}")
        return PendingDeployment(role=role, tx_hash=tx_hash)

    def confirm(self, pending: PendingDeployment) -> ComponentHandle:
        """
        Wait until a creation transaction is mined.

        Raises:
            FatalCallError: If the transaction reverted or created no contract
        """
        receipt = self._wait(pending.tx_hash)
        address = receipt.get("contractAddress")
        if receipt.get("status") != 1 or not address:
            raise FatalCallError(
                f"{pending.role.value} deployment reverted (tx {pending.tx_hash})",
                role=pending.role.value,
            )
        return ComponentHandle(
            role=pending.role,
            address=Web3.to_checksum_address(address),
            created_at=datetime.now(timezone.utc),
            tx_hash=pending.tx_hash,
        )

    def invoke(
        self,
        handle: ComponentHandle,
        method: str,
        args: Sequence[Any],
        fee_override: Optional[FeeOverride] = None,
    ) -> PendingCall:
        """Send a state-changing call to a deployed contract."""
        abi, _ = self.artifacts.load(handle.role.value)
        contract = self.w3.eth.contract(address=handle.address, abi=abi)
        function = getattr(contract.functions, method)(*args)
        tx = function.build_transaction(self._tx_params(fee_override))
        tx_hash = self._sign_and_send(tx)
        logger.debug(f"{handle.role.value}.{method} sent: {tx_hash}")
        return PendingCall(target=handle.role, method=method, tx_hash=tx_hash)

    def confirm_call(self, pending: PendingCall) -> None:
        """
        Wait until a setter transaction is mined.

        Raises:
            FatalCallError: If the transaction reverted
        """
        receipt = self._wait(pending.tx_hash)
        if receipt.get("status") != 1:
            raise FatalCallError(
                f"{pending.target.value}.{pending.method} reverted (tx {pending.tx_hash})",
                role=pending.target.value,
                step=pending.method,
            )
