"""
Contract Deployment Script
Deploys a compiled contract to the configured network and prints its address

Usage:
    python deploy.py [--network NAME] [--contract NAME] [--timeout SECONDS]
"""

import os
import sys
import asyncio
import argparse
from typing import List, Optional
from loguru import logger

from blockchain.artifacts import ArtifactRegistry, DEFAULT_ARTIFACTS_DIR
from blockchain.deployer import (
    ContractDeployer,
    DeploymentResult,
    DEFAULT_CONFIRMATION_TIMEOUT
)
from blockchain.exceptions import DeploymentError, TransactionError
from blockchain.network_config import NetworkConfig, DEFAULT_CONFIG_PATH

DEFAULT_CONTRACT = 'MetaNFT'
DEFAULT_LOG_FILE = 'data/logs/deploy.log'


def setup_logging(level: str = "INFO"):
    """Configure stderr and file logging"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level
    )

    # DEPLOY_LOG_FILE= (empty) disables the file sink
    log_file = os.getenv('DEPLOY_LOG_FILE', DEFAULT_LOG_FILE)
    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        allow_abbrev=False,
        description='Deploy a compiled contract and print its address.'
    )

    parser.add_argument('--network', help='Network to deploy to. Default: the configured default network')
    parser.add_argument('--contract', default=DEFAULT_CONTRACT, help='Contract name. Default: %(default)s')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, metavar='PATH', help='Network config file. Default: %(default)s')
    parser.add_argument('--artifacts', default=DEFAULT_ARTIFACTS_DIR, metavar='PATH', help='Compiled artifacts directory. Default: %(default)s')
    parser.add_argument('--timeout', type=float, default=DEFAULT_CONFIRMATION_TIMEOUT, metavar='SECONDS', help='Confirmation timeout. Default: %(default)s')
    parser.add_argument('--log-level', default='INFO', help='Default: %(default)s')

    return parser.parse_args(argv)


async def deploy_contract(
    contract_name: str,
    network: Optional[str] = None,
    config_path: str = DEFAULT_CONFIG_PATH,
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR,
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
) -> DeploymentResult:
    """
    Deploy one contract

    Configuration and artifact are both resolved before any connection
    to the network is opened.

    Raises:
        DeploymentError: Any configuration, artifact or transaction failure
    """
    config = NetworkConfig(config_path)
    profile = config.get_profile(network)

    registry = ArtifactRegistry(artifacts_dir, compiler_version=config.compiler_version)
    artifact = registry.get_artifact(contract_name)

    deployer = ContractDeployer.from_profile(profile, confirmation_timeout=timeout)

    if not await asyncio.to_thread(deployer.is_connected):
        raise TransactionError(f"Failed to connect to network '{profile.name}'")

    return await deployer.deploy(artifact)


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point

    Returns:
        Process exit code (0 = deployed, 1 = failed)
    """
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        result = await deploy_contract(
            args.contract,
            network=args.network,
            config_path=args.config,
            artifacts_dir=args.artifacts,
            timeout=args.timeout
        )
    except DeploymentError as e:
        logger.error(f"Deployment failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

    print(f"Contract deployed to address: {result.contract_address}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
