"""
Deployment Errors
Every failure raised while configuring or deploying a contract
"""


class DeploymentError(Exception):
    """Base class for all deployment failures"""


class ConfigError(DeploymentError):
    """Network configuration is missing, malformed or incomplete"""


class ArtifactNotFound(DeploymentError):
    """No deployable compiled artifact exists for the contract name"""


class TransactionError(DeploymentError):
    """Network, signing, submission or on-chain failure"""


class ConfirmationTimeout(TransactionError):
    """Deployment receipt was not seen before the timeout expired"""
