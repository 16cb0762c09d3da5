"""
Configuration for a deployment run.

Everything is read once, up front, into a ``DeployConfig`` that is passed
explicitly to the orchestrator and its collaborators.
"""
import json
import logging
import os
import urllib.parse
from decimal import Decimal, InvalidOperation
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, Field

from .exceptions import PreconditionError
from .retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "arc"
DEFAULT_SETTLE_DELAY = 3.0  # seconds
DEFAULT_RECEIPT_TIMEOUT = 120  # seconds
LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class NetworkConfig:
    """Named network presets shipped with the package (networks.json)"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network presets, caching them after the first read.

        Returns:
            Mapping of network name to preset
        """
        if cls._networks_cache is None:
            text = resources.files("arc_deployer").joinpath("networks.json").read_text(encoding="utf-8")
            cls._networks_cache = json.loads(text)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        networks = cls.load_networks()
        if network not in networks:
            raise ValueError(
                f"Unknown network '{network}'. Available networks: {', '.join(sorted(networks))}"
            )
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None,
                    env: Optional[Mapping[str, str]] = None) -> str:
        """
        Resolve the RPC URL for a network.

        Precedence: explicit override, then ``<NETWORK>_RPC_URL`` from the
        environment, then the preset.
        """
        if override:
            return override
        env = os.environ if env is None else env
        env_var = f"{network.upper().replace('-', '_')}_RPC_URL"
        if env.get(env_var):
            return env[env_var]
        return cls.get_network(network).get("rpc", "")

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def name_for_chain_id(cls, chain_id: int) -> Optional[str]:
        for name, preset in cls.load_networks().items():
            if int(preset.get("chainId", -1)) == chain_id:
                return name
        return None


def validate_rpc_url(url: str, env: Optional[Mapping[str, str]] = None) -> None:
    """
    Require https for remote endpoints.

    Loopback hosts are always allowed; ARC_INSECURE_RPC=1 allows plain http
    for development.

    Raises:
        PreconditionError: If the URL is empty or insecure
    """
    if not url:
        raise PreconditionError("RPC URL is not configured (set ARC_RPC_URL or pass --rpc-url)")
    env = os.environ if env is None else env
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    if parsed.scheme not in ("http", "https"):
        raise PreconditionError(f"RPC URL must be http(s), got: {url}")
    if parsed.scheme != "https" and host not in LOCAL_HOSTS and env.get("ARC_INSECURE_RPC") != "1":
        raise PreconditionError(
            f"RPC URL must use https:// for security (got: {parsed.scheme}://). "
            "Set ARC_INSECURE_RPC=1 to allow http for development."
        )


def _number(env: Mapping[str, str], key: str, cast, default):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise PreconditionError(f"{key} must be a number, got: {raw!r}")


def validate_gwei(raw: Any) -> str:
    """
    Check an explicit fee given in gwei.

    Raises:
        PreconditionError: Unless the value is a finite number >= 0
    """
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise PreconditionError(f"ARC_TX_GWEI must be a number, got: {raw!r}")
    if not value.is_finite() or value < 0:
        raise PreconditionError(f"ARC_TX_GWEI must be a finite non-negative number, got: {raw!r}")
    return str(raw).strip()


class DeployConfig(BaseModel):
    """Settings for one deployment run"""

    network: str = DEFAULT_NETWORK
    rpc_url: str
    private_key: str = Field(..., repr=False)
    usdc_address: Optional[str] = None
    tx_gwei: Optional[str] = None
    expected_chain_id: Optional[int] = None
    max_attempts: int = Field(DEFAULT_MAX_ATTEMPTS, ge=1)
    base_delay: float = Field(DEFAULT_BASE_DELAY, ge=0)
    settle_delay: float = Field(DEFAULT_SETTLE_DELAY, ge=0)
    receipt_timeout: float = Field(DEFAULT_RECEIPT_TIMEOUT, gt=0)
    poll_interval: float = Field(0.5, gt=0)
    deployments_dir: Path = Path("deployments")
    artifacts_dir: Path = Path("artifacts")
    record_prefix: str = "arc"

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
        network: Optional[str] = None,
        **overrides: Any,
    ) -> "DeployConfig":
        """
        Build the configuration from environment variables.

        Values in a ``.env`` file are used where the environment has none.

        Args:
            env: Mapping to read instead of os.environ
            dotenv_path: Path of the .env file (default: ./.env if present and env is None)
            network: Network preset name (default: ARC_NETWORK or "arc")
            **overrides: Field values that take precedence (None values are ignored)

        Raises:
            PreconditionError: If a required value is missing or malformed
        """
        merged: Dict[str, str] = {}
        if dotenv_path is not None or (env is None and Path(".env").exists()):
            merged.update({k: v for k, v in dotenv_values(dotenv_path or ".env").items() if v is not None})
        merged.update(os.environ if env is None else env)

        overrides = {k: v for k, v in overrides.items() if v is not None}
        network = network or merged.get("ARC_NETWORK") or DEFAULT_NETWORK

        try:
            preset_chain_id = NetworkConfig.get_chain_id(network)
            rpc_url = NetworkConfig.get_rpc_url(network, overrides.pop("rpc_url", None), env=merged)
        except ValueError as e:
            raise PreconditionError(str(e))

        validate_rpc_url(rpc_url, env=merged)

        private_key = overrides.pop("private_key", None) or merged.get("ARC_PRIVATE_KEY")
        if not private_key:
            raise PreconditionError("ARC_PRIVATE_KEY missing in env")

        values: Dict[str, Any] = {
            "network": network,
            "rpc_url": rpc_url,
            "private_key": private_key,
            "usdc_address": merged.get("USDC_TOKEN_ADDRESS") or None,
            "tx_gwei": merged.get("ARC_TX_GWEI") or None,
            "expected_chain_id": _number(merged, "ARC_CHAIN_ID", int, preset_chain_id),
            "max_attempts": _number(merged, "ARC_MAX_ATTEMPTS", int, DEFAULT_MAX_ATTEMPTS),
            "base_delay": _number(merged, "ARC_BACKOFF_BASE", float, DEFAULT_BASE_DELAY),
            "settle_delay": _number(merged, "ARC_SETTLE_DELAY", float, DEFAULT_SETTLE_DELAY),
            "receipt_timeout": _number(merged, "ARC_RECEIPT_TIMEOUT", float, DEFAULT_RECEIPT_TIMEOUT),
        }
        if merged.get("ARC_DEPLOYMENTS_DIR"):
            values["deployments_dir"] = Path(merged["ARC_DEPLOYMENTS_DIR"])
        if merged.get("ARC_ARTIFACTS_DIR"):
            values["artifacts_dir"] = Path(merged["ARC_ARTIFACTS_DIR"])
        if merged.get("ARC_RECORD_PREFIX"):
            values["record_prefix"] = merged["ARC_RECORD_PREFIX"]
        values.update(overrides)

        if values["tx_gwei"] is not None:
            values["tx_gwei"] = validate_gwei(values["tx_gwei"])

        try:
            config = cls(**values)
        except ValueError as e:
            raise PreconditionError(f"Invalid configuration: {e}")

        logger.debug(f"Loaded configuration for network {config.network} ({config.rpc_url})")
        return config
