"""
Blockchain Interaction Package
Handles network configuration, artifact lookup and contract deployment
"""

from .artifacts import ArtifactRegistry, ContractArtifact
from .deployer import ContractDeployer, DeploymentResult
from .exceptions import (
    ArtifactNotFound,
    ConfigError,
    ConfirmationTimeout,
    DeploymentError,
    TransactionError
)
from .network_config import NetworkConfig, NetworkProfile

__all__ = [
    'ArtifactRegistry',
    'ContractArtifact',
    'ContractDeployer',
    'DeploymentResult',
    'NetworkConfig',
    'NetworkProfile',
    'DeploymentError',
    'ConfigError',
    'ArtifactNotFound',
    'TransactionError',
    'ConfirmationTimeout'
]
