"""
Deployment Pre-flight Check
Verifies configuration, environment, artifacts and RPC connectivity
before running a deployment

Run: python -m scripts.check_config [--network NAME] [--contract NAME]
"""

import sys
import argparse
from functools import partial
from loguru import logger

from blockchain.artifacts import ArtifactRegistry, DEFAULT_ARTIFACTS_DIR
from blockchain.deployer import ContractDeployer, NETWORK_ERRORS
from blockchain.exceptions import DeploymentError
from blockchain.network_config import NetworkConfig, DEFAULT_CONFIG_PATH


def check_config_file(config_path):
    """Check that the network config loads"""
    logger.info("Checking network config...")

    config = NetworkConfig(config_path)

    logger.success(f"✓ {config_path}: {', '.join(config.network_names())}")
    logger.info(f"  Default network: {config.default_network}")
    logger.info(f"  Compiler: solc {config.compiler_version}")
    return True


def check_environment_variables(config_path, network):
    """Check the selected network's environment variables"""
    logger.info("Checking environment variables...")

    config = NetworkConfig(config_path)
    network = network or config.default_network
    missing = config.missing_variables(network)

    if missing:
        logger.error(f"Missing environment variables for {network}: {', '.join(missing)}")
        return False

    logger.success(f"✓ All environment variables for {network} set")
    return True


def check_artifact(config_path, artifacts_dir, contract_name):
    """Check that the contract has a deployable artifact"""
    logger.info("Checking compiled artifacts...")

    config = NetworkConfig(config_path)
    registry = ArtifactRegistry(artifacts_dir, compiler_version=config.compiler_version)

    available = registry.available()
    if available:
        logger.info(f"  Available: {', '.join(available)}")

    artifact = registry.get_artifact(contract_name)

    logger.success(f"✓ {contract_name}: {artifact.path}")
    return True


def check_rpc_connection(config_path, network):
    """Check that the network's RPC endpoint answers"""
    logger.info("Checking RPC connection...")

    profile = NetworkConfig(config_path).get_profile(network)
    deployer = ContractDeployer.from_profile(profile)

    if not deployer.is_connected():
        logger.error(f"  ✗ {profile.name}: Connection failed")
        return False

    try:
        block = deployer.w3.eth.block_number
        balance = deployer.w3.eth.get_balance(deployer.account.address)
    except NETWORK_ERRORS as e:
        logger.error(f"  ✗ {profile.name}: {e}")
        return False

    logger.success(f"  ✓ {profile.name}: Connected (Block: {block})")
    logger.info(f"  Deployer balance: {deployer.w3.from_wei(balance, 'ether'):.4f}")

    if balance == 0:
        logger.warning("  ⚠ Deployer account has no funds for gas")

    return True


def main(argv=None):
    """Run all pre-flight checks"""
    parser = argparse.ArgumentParser(allow_abbrev=False, description='Deployment pre-flight check. Run from the repository root as: python -m scripts.check_config')
    parser.add_argument('--network')
    parser.add_argument('--contract', default='MetaNFT')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH)
    parser.add_argument('--artifacts', default=DEFAULT_ARTIFACTS_DIR)
    args = parser.parse_args(argv)

    logger.info("=" * 70)
    logger.info("Deployment Pre-flight Check")
    logger.info("=" * 70)

    checks = [
        ("Network Config", partial(check_config_file, args.config)),
        ("Environment Variables", partial(check_environment_variables, args.config, args.network)),
        ("Contract Artifact", partial(check_artifact, args.config, args.artifacts, args.contract)),
        ("RPC Connection", partial(check_rpc_connection, args.config, args.network))
    ]

    results = []

    for name, check_func in checks:
        logger.info("")
        try:
            result = check_func()
            results.append((name, result))
        except DeploymentError as e:
            logger.error(f"Error in {name}: {e}")
            results.append((name, False))

    # Summary
    logger.info("")
    logger.info("=" * 70)
    logger.info("Summary")
    logger.info("=" * 70)

    passed = sum(1 for _, result in results if result)
    total = len(results)

    for name, result in results:
        status = "✓ PASS" if result else "✗ FAIL"
        logger.info(f"  {status}: {name}")

    logger.info("")
    logger.info(f"Total: {passed}/{total} checks passed")

    if passed == total:
        logger.success("✅ Ready to deploy")
        logger.info("Deploy: python deploy.py")
        return 0

    logger.error("❌ Not ready - fix issues above")
    return 1


if __name__ == "__main__":
    sys.exit(main())
