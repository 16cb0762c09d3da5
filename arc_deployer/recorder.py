"""
Persistence of deployment records.

Each successful run is written twice: ``<prefix>-<chainId>-<timestamp>.json``
keeps the history and ``<prefix>-<chainId>.json`` always holds the latest run.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import portalocker

from .exceptions import PersistenceError
from .models import ComponentHandle, DeploymentRecord, RecordPaths, Role

logger = logging.getLogger(__name__)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-31T12:00:00.000Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_timestamp(timestamp: str) -> str:
    """Make a timestamp safe for file names: ':' and '.' become '-'."""
    return timestamp.replace(":", "-").replace(".", "-")


class DeploymentRecorder:
    """Writes deployment records under a storage directory"""

    def __init__(self, storage_root: Path = Path("deployments"), prefix: str = "arc", lock_timeout: int = 10):
        self.storage_root = Path(storage_root)
        self.prefix = prefix
        self.lock_timeout = lock_timeout

    def latest_path(self, chain_id: int) -> Path:
        return self.storage_root / f"{self.prefix}-{chain_id}.json"

    def timestamped_path(self, chain_id: int, timestamp: str) -> Path:
        return self.storage_root / f"{self.prefix}-{chain_id}-{sanitize_timestamp(timestamp)}.json"

    def _lock_path(self, chain_id: int) -> str:
        return str(self.latest_path(chain_id)) + ".lock"

    def record(
        self,
        handles: Dict[Role, ComponentHandle],
        network_name: str,
        chain_id: int,
        deployer: str,
        usdc_address: str,
        deployed_at: Optional[str] = None,
    ) -> RecordPaths:
        """
        Build the deployment record and write both copies.

        Args:
            handles: The five deployed contracts
            network_name: Name of the network
            chain_id: Numeric chain id
            deployer: Deploying account address
            usdc_address: Payment token address
            deployed_at: ISO-8601 timestamp (defaults to now)

        Returns:
            Paths of the timestamped and latest files

        Raises:
            PersistenceError: If the record could not be written
        """
        deployed_at = deployed_at or utc_timestamp()
        record = DeploymentRecord.from_handles(
            handles,
            network=network_name,
            chain_id=chain_id,
            deployed_at=deployed_at,
            deployer=deployer,
            usdc=usdc_address,
        )
        return self.write(record)

    def write(self, record: DeploymentRecord) -> RecordPaths:
        paths = RecordPaths(
            timestamped_path=self.timestamped_path(record.chain_id, record.deployed_at),
            latest_path=self.latest_path(record.chain_id),
        )
        body = json.dumps(record.to_json_dict(), indent=2)

        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            with portalocker.Lock(self._lock_path(record.chain_id), timeout=self.lock_timeout):
                with open(paths.timestamped_path, "w", encoding="utf-8") as f:
                    f.write(body)
                with open(paths.latest_path, "w", encoding="utf-8") as f:
                    f.write(body)
        except (OSError, portalocker.LockException) as e:
            logger.error(f"Failed to write deployment record: {e}")
            raise PersistenceError(f"Failed to write deployment record to {self.storage_root}: {e}", record=record) from e

        logger.info("Deployment saved to:")
        logger.info(f"  Timestamped: {paths.timestamped_path}")
        logger.info(f"  Latest: {paths.latest_path}")
        return paths

    def load_latest(self, chain_id: int) -> Optional[DeploymentRecord]:
        """Read the latest record for a chain, or None if there is none."""
        path = self.latest_path(chain_id)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return DeploymentRecord.model_validate(json.load(f))
