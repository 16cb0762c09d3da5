"""
Data models for the arc deployer.
"""
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """The five fixed contracts, in creation order."""
    JOB_REGISTRY = "JobRegistry"
    REPUTATION_TOKEN = "ReputationToken"
    ESCROW = "Escrow"
    ORDER_BOOK = "OrderBook"
    AGENT_REGISTRY = "AgentRegistry"


class FeeSuggestion(BaseModel):
    """EIP-1559 fee data suggested by the endpoint (wei). Either field may be missing."""
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


class FeeOverride(BaseModel):
    """Explicit EIP-1559 fee parameters attached to a transaction (wei)"""
    model_config = ConfigDict(frozen=True)

    max_fee_per_gas: int = Field(..., ge=0)
    max_priority_fee_per_gas: int = Field(..., ge=0)

    def as_tx_params(self) -> Dict[str, int]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


class NetworkInfo(BaseModel):
    name: str
    chain_id: int


class PendingDeployment(BaseModel):
    """A contract creation transaction that has been sent but not yet mined"""
    role: Role
    tx_hash: str


class PendingCall(BaseModel):
    """A setter transaction that has been sent but not yet mined"""
    target: Role
    method: str
    tx_hash: str


class ComponentHandle(BaseModel):
    """A deployed contract, resolved to its on-chain address"""
    model_config = ConfigDict(frozen=True)

    role: Role
    address: str
    created_at: datetime
    tx_hash: Optional[str] = None


class DeploymentRecord(BaseModel):
    """
    Persisted outcome of a successful run.

    Serialized with ``model_dump(by_alias=True)`` the keys match the JSON
    documents written by the recorder (``chainId``, ``deployedAt``...).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    network: str
    chain_id: int = Field(..., alias="chainId")
    deployed_at: str = Field(..., alias="deployedAt")
    deployer: str
    usdc: str
    contracts: Dict[str, str]

    @field_validator("contracts")
    @classmethod
    def _exactly_five_roles(cls, value: Dict[str, str]) -> Dict[str, str]:
        expected = [role.value for role in Role]
        missing = [name for name in expected if name not in value]
        unknown = [name for name in value if name not in expected]
        if missing or unknown:
            raise ValueError(
                f"contracts must name exactly {', '.join(expected)} "
                f"(missing: {missing}, unknown: {unknown})"
            )
        # Keep creation order in the written JSON
        return {name: value[name] for name in expected}

    @classmethod
    def from_handles(
        cls,
        handles: Dict[Role, ComponentHandle],
        network: str,
        chain_id: int,
        deployed_at: str,
        deployer: str,
        usdc: str,
    ) -> "DeploymentRecord":
        return cls(
            network=network,
            chainId=chain_id,
            deployedAt=deployed_at,
            deployer=deployer,
            usdc=usdc,
            contracts={role.value: handle.address for role, handle in handles.items()},
        )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class RecordPaths(BaseModel):
    timestamped_path: Path
    latest_path: Path
