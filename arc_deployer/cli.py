"""
Command line entry point: ``arc-deploy``.

Exit codes:
    0  deployed, wired and recorded
    1  deployment failed
    2  invalid or missing configuration, nothing was sent
    3  deployed and wired, but the record could not be written
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import DeployConfig, NetworkConfig
from .endpoint import Endpoint
from .exceptions import PersistenceError, PreconditionError
from .orchestrator import DeploymentOrchestrator
from .version import __version__

logger = logging.getLogger("arc-deploy")

EXIT_OK = 0
EXIT_DEPLOY_FAILED = 1
EXIT_CONFIG = 2
EXIT_NOT_RECORDED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arc-deploy",
        description="Deploy and wire the marketplace contracts",
    )
    parser.add_argument(
        "--network",
        choices=sorted(NetworkConfig.load_networks()),
        help="Network preset (default: ARC_NETWORK or arc)",
    )
    parser.add_argument("--rpc-url", help="Override the RPC endpoint URL")
    parser.add_argument("--env-file", help="Read settings from this .env file")
    parser.add_argument("--tx-gwei", help="Fixed maxFeePerGas for wiring calls, in gwei")
    parser.add_argument("--max-attempts", type=int, help="Attempts per remote call (default 5)")
    parser.add_argument("--backoff-base", type=float, help="First retry delay in seconds (default 2)")
    parser.add_argument("--settle-delay", type=float, help="Pause between transactions in seconds (default 3)")
    parser.add_argument("--deployments-dir", help="Where deployment records are written")
    parser.add_argument("--artifacts-dir", help="Hardhat artifacts directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(args: argparse.Namespace) -> DeployConfig:
    return DeployConfig.from_env(
        dotenv_path=args.env_file,
        network=args.network,
        rpc_url=args.rpc_url,
        tx_gwei=args.tx_gwei,
        max_attempts=args.max_attempts,
        base_delay=args.backoff_base,
        settle_delay=args.settle_delay,
        deployments_dir=args.deployments_dir,
        artifacts_dir=args.artifacts_dir,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args)
        endpoint = Endpoint.from_config(config)
        result = DeploymentOrchestrator(config, endpoint).run()
    except PreconditionError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG
    except PersistenceError as e:
        logger.error(f"Contracts were deployed but the record was not saved: {e}")
        if e.record is not None:
            print(json.dumps(e.record.to_json_dict(), indent=2), file=sys.stderr)
        return EXIT_NOT_RECORDED
    except Exception as e:
        logger.exception(f"Deployment failed: {e}")
        return EXIT_DEPLOY_FAILED

    logger.info(f"Deployment complete on {result.network.name} ({result.network.chain_id})")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
