"""
Contract Deployer
Builds, signs and submits contract creation transactions and waits for
their on-chain confirmation
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception
from eth_account import Account
from loguru import logger

from .artifacts import ContractArtifact
from .exceptions import ConfigError, ConfirmationTimeout, TransactionError
from .network_config import NetworkProfile

DEFAULT_CONFIRMATION_TIMEOUT = 300
DEFAULT_GAS_LIMIT = 3000000
GAS_BUFFER_PCT = 20

# requests' connection errors derive from OSError
NETWORK_ERRORS = (Web3Exception, ValueError, OSError)


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of one successful deployment"""

    contract_name: str
    contract_address: str
    tx_hash: str
    network: str
    gas_used: Optional[int] = None
    block_number: Optional[int] = None


class ContractDeployer:
    """
    Deploys compiled contracts from a single signing account

    Every call to deploy() sends a new creation transaction, so running it
    twice yields two contract instances at two addresses.
    """

    def __init__(
        self,
        w3: Web3,
        account,
        network: str = 'unknown',
        chain_id: Optional[int] = None,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_latency: float = 0.5
    ):
        """
        Initialize Contract Deployer

        Args:
            w3: Web3 instance
            account: eth_account LocalAccount that signs the deployment
            network: Network name, for reporting
            chain_id: Chain id to sign for (None = ask the node)
            confirmation_timeout: Seconds to wait for the receipt
            poll_latency: Seconds between receipt polls
        """
        self.w3 = w3
        self.account = account
        self.network = network
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout
        self.poll_latency = poll_latency

    @classmethod
    def from_profile(
        cls,
        profile: NetworkProfile,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        request_timeout: float = 30
    ) -> 'ContractDeployer':
        """
        Create a deployer connected to a network profile

        The first account key of the profile signs the deployment.
        """
        w3 = Web3(Web3.HTTPProvider(
            profile.rpc_url,
            request_kwargs={'timeout': request_timeout}
        ))

        try:
            account = Account.from_key(profile.account_keys[0])
        except Exception as e:
            raise ConfigError(f"Invalid private key for network '{profile.name}': {e}") from e

        logger.info(f"Deploying from: {account.address}")

        return cls(
            w3,
            account,
            network=profile.name,
            chain_id=profile.chain_id,
            confirmation_timeout=confirmation_timeout
        )

    def is_connected(self) -> bool:
        """Check if the RPC endpoint answers"""
        try:
            return self.w3.is_connected()
        except NETWORK_ERRORS as e:
            logger.debug(f"Connection check failed: {e}")
            return False

    async def deploy(self, artifact: ContractArtifact) -> DeploymentResult:
        """
        Deploy a contract and wait for confirmation

        Args:
            artifact: Compiled contract (constructor takes no arguments)

        Returns:
            DeploymentResult

        Raises:
            TransactionError: Submission failed or the deployment reverted
            ConfirmationTimeout: No receipt within confirmation_timeout
        """
        logger.info(f"Deploying {artifact.contract_name} to {self.network}...")

        try:
            tx_hash = await asyncio.to_thread(self._submit, artifact)
        except NETWORK_ERRORS as e:
            raise TransactionError(f"Failed to submit deployment transaction: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hash_hex}")
        logger.info("Waiting for confirmation...")

        try:
            receipt = await asyncio.to_thread(
                self.w3.eth.wait_for_transaction_receipt,
                tx_hash,
                timeout=self.confirmation_timeout,
                poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                f"Transaction {tx_hash_hex} not confirmed within "
                f"{self.confirmation_timeout}s"
            ) from e
        except NETWORK_ERRORS as e:
            raise TransactionError(f"Error waiting for {tx_hash_hex}: {e}") from e

        if receipt['status'] != 1:
            raise TransactionError(f"Deployment reverted: {tx_hash_hex}")

        contract_address = receipt['contractAddress']
        if not contract_address:
            raise TransactionError(f"Receipt for {tx_hash_hex} has no contract address")

        result = DeploymentResult(
            contract_name=artifact.contract_name,
            contract_address=contract_address,
            tx_hash=tx_hash_hex,
            network=self.network,
            gas_used=receipt.get('gasUsed'),
            block_number=receipt.get('blockNumber')
        )

        logger.success(f"Contract address: {contract_address}")
        logger.debug(f"Gas used: {result.gas_used}, block: {result.block_number}")

        return result

    def _submit(self, artifact: ContractArtifact):
        """Build, sign and send the creation transaction"""
        contract = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)

        transaction = self._build_transaction(contract)

        logger.debug("Signing transaction...")
        signed_tx = self.account.sign_transaction(transaction)

        return self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)

    def _build_transaction(self, contract) -> Dict:
        """Build the constructor transaction with nonce, gas and chain id"""
        address = self.account.address

        nonce = self.w3.eth.get_transaction_count(address, 'pending')
        gas_price = self.w3.eth.gas_price
        chain_id = self.chain_id if self.chain_id is not None else self.w3.eth.chain_id

        try:
            gas_estimate = contract.constructor().estimate_gas({'from': address})
            gas_limit = gas_estimate * (100 + GAS_BUFFER_PCT) // 100
        except (Web3Exception, ValueError) as e:
            logger.warning(f"Gas estimation failed: {e}, using default")
            gas_limit = DEFAULT_GAS_LIMIT

        logger.info(f"Gas limit: {gas_limit}")
        logger.info(f"Gas price: {self.w3.from_wei(gas_price, 'gwei')} gwei")

        return contract.constructor().build_transaction({
            'from': address,
            'nonce': nonce,
            'gas': gas_limit,
            'gasPrice': gas_price,
            'chainId': chain_id
        })
