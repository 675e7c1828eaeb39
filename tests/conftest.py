"""
Shared fixtures: isolated environment, temporary config and artifacts
"""

import json
import pytest
from pathlib import Path
from loguru import logger

REPO_CONFIG = Path(__file__).resolve().parent.parent / 'config' / 'network_config.json'

# Hardhat development account #0
TEST_PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
TEST_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'

METANFT_ABI = [
    {"inputs": [], "stateMutability": "nonpayable", "type": "constructor"},
    {
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    }
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without deployment variables or a log file"""
    for var in ('API_URL', 'PRIVATE_KEY', 'alchemyId'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('DEPLOY_LOG_FILE', '')

    yield

    # Sinks added by setup_logging() point at pytest's capture streams
    logger.remove()


@pytest.fixture
def network_config_file(tmp_path):
    """Config with a local network plus env-backed networks"""
    config = {
        "solidity": "0.8.9",
        "default_network": "ropsten",
        "networks": {
            "local": {
                "name": "Local",
                "url": "http://127.0.0.1:8545",
                "chain_id": 31337,
                "default_accounts": [TEST_PRIVATE_KEY]
            },
            "ropsten": {
                "url_env": "API_URL",
                "accounts_env": ["PRIVATE_KEY"]
            },
            "mumbai": {
                "url_template": "https://polygon-mumbai.g.alchemy.com/v2/{alchemyId}",
                "chain_id": 80001,
                "accounts_env": ["PRIVATE_KEY"]
            }
        }
    }

    path = tmp_path / 'network_config.json'
    path.write_text(json.dumps(config))
    return path


def write_artifact(artifacts_dir, source, name, bytecode='0x6080604052348015600f57600080fd5b50', abi=None):
    """Write a Hardhat-style artifact file"""
    contract_dir = artifacts_dir / f"{source}.sol"
    contract_dir.mkdir(parents=True, exist_ok=True)

    path = contract_dir / f"{name}.json"
    path.write_text(json.dumps({
        "_format": "hh-sol-artifact-1",
        "contractName": name,
        "sourceName": f"contracts/{source}.sol",
        "abi": METANFT_ABI if abi is None else abi,
        "bytecode": bytecode
    }))
    return path


@pytest.fixture
def artifacts_dir(tmp_path):
    """Artifacts directory holding a compiled MetaNFT"""
    path = tmp_path / 'artifacts' / 'contracts'
    write_artifact(path, 'MetaNFT', 'MetaNFT')
    return path
