#!/usr/bin/env python3
"""
Deploy the contracts to a local Hardhat node from Python.

Start a node and compile first:
    npx hardhat node
    npx hardhat compile

Then run (the key below is Hardhat's first default account):
    USDC_TOKEN_ADDRESS=0x... python examples/deploy_local.py
"""
import logging
import os
import sys

from arc_deployer import DeployConfig, DeploymentOrchestrator, Endpoint, DeployerError

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("deploy-local-example")

HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


def main() -> int:
    config = DeployConfig.from_env(
        env={
            "ARC_PRIVATE_KEY": os.environ.get("ARC_PRIVATE_KEY", HARDHAT_KEY),
            "USDC_TOKEN_ADDRESS": os.environ.get("USDC_TOKEN_ADDRESS", ""),
        },
        network="hardhat",
        settle_delay=0,
        deployments_dir="deployments/local",
    )

    try:
        result = DeploymentOrchestrator(config, Endpoint.from_config(config)).run()
    except DeployerError as e:
        logger.error(f"Deployment failed: {e}")
        return 1

    for name, address in result.addresses.items():
        print(f"{name:16} {address}")
    print(f"Saved to {result.paths.latest_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
