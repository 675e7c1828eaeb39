"""
Unit Tests for Contract Deployer
"""

import pytest
from unittest.mock import Mock
from web3.exceptions import TimeExhausted

from blockchain.artifacts import ContractArtifact
from blockchain.deployer import (
    ContractDeployer,
    DeploymentResult,
    DEFAULT_GAS_LIMIT
)
from blockchain.exceptions import ConfigError, ConfirmationTimeout, TransactionError
from blockchain.network_config import NetworkProfile
from tests.conftest import METANFT_ABI, TEST_ADDRESS, TEST_PRIVATE_KEY

TX_HASH = bytes.fromhex('ab' * 32)


def receipt(address, status=1):
    return {
        'status': status,
        'contractAddress': address,
        'gasUsed': 1234567,
        'blockNumber': 42
    }


@pytest.fixture
def artifact():
    return ContractArtifact(
        contract_name='MetaNFT',
        source_name='contracts/MetaNFT.sol',
        abi=METANFT_ABI,
        bytecode='0x6080604052',
        path='artifacts/contracts/MetaNFT.sol/MetaNFT.json'
    )


@pytest.fixture
def w3():
    """Mock Web3 instance with a healthy node"""
    w3 = Mock()
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.gas_price = 30 * 10**9
    w3.eth.chain_id = 1337
    w3.from_wei.return_value = 30

    constructor = w3.eth.contract.return_value.constructor.return_value
    constructor.estimate_gas.return_value = 100000
    constructor.build_transaction.side_effect = lambda tx: dict(tx, data='0x6080604052')

    w3.eth.send_raw_transaction.return_value = TX_HASH
    w3.eth.wait_for_transaction_receipt.return_value = receipt('0xABC123')
    return w3


@pytest.fixture
def account():
    account = Mock()
    account.address = TEST_ADDRESS
    account.sign_transaction.return_value = Mock(raw_transaction=b'\x02signed')
    return account


@pytest.fixture
def deployer(w3, account):
    return ContractDeployer(w3, account, network='local', chain_id=31337, confirmation_timeout=60)


def built_transaction(w3):
    constructor = w3.eth.contract.return_value.constructor.return_value
    return constructor.build_transaction.call_args[0][0]


class TestDeploy:

    @pytest.mark.asyncio
    async def test_successful_deployment(self, deployer, w3, account, artifact):
        result = await deployer.deploy(artifact)

        assert isinstance(result, DeploymentResult)
        assert result.contract_address == '0xABC123'
        assert result.contract_name == 'MetaNFT'
        assert result.network == 'local'
        assert result.tx_hash == '0x' + 'ab' * 32
        assert result.gas_used == 1234567
        assert result.block_number == 42

        w3.eth.contract.assert_called_with(abi=METANFT_ABI, bytecode='0x6080604052')
        account.sign_transaction.assert_called_once()
        w3.eth.send_raw_transaction.assert_called_once_with(b'\x02signed')

    @pytest.mark.asyncio
    async def test_transaction_fields(self, deployer, w3, artifact):
        await deployer.deploy(artifact)

        tx = built_transaction(w3)
        assert tx['from'] == TEST_ADDRESS
        assert tx['nonce'] == 7
        assert tx['gas'] == 120000  # estimate + 20%
        assert tx['gasPrice'] == 30 * 10**9
        assert tx['chainId'] == 31337

        w3.eth.get_transaction_count.assert_called_once_with(TEST_ADDRESS, 'pending')

    @pytest.mark.asyncio
    async def test_chain_id_from_node(self, w3, account, artifact):
        deployer = ContractDeployer(w3, account, network='ropsten')

        await deployer.deploy(artifact)

        assert built_transaction(w3)['chainId'] == 1337

    @pytest.mark.asyncio
    async def test_gas_estimation_fallback(self, deployer, w3, artifact):
        constructor = w3.eth.contract.return_value.constructor.return_value
        constructor.estimate_gas.side_effect = ValueError("execution reverted")

        await deployer.deploy(artifact)

        assert built_transaction(w3)['gas'] == DEFAULT_GAS_LIMIT

    @pytest.mark.asyncio
    async def test_waits_with_timeout(self, deployer, w3, artifact):
        await deployer.deploy(artifact)

        _, kwargs = w3.eth.wait_for_transaction_receipt.call_args
        assert kwargs['timeout'] == 60

    @pytest.mark.asyncio
    async def test_each_deploy_creates_new_instance(self, deployer, w3, artifact):
        w3.eth.wait_for_transaction_receipt.side_effect = [
            receipt('0x0000000000000000000000000000000000000001'),
            receipt('0x0000000000000000000000000000000000000002')
        ]

        first = await deployer.deploy(artifact)
        second = await deployer.deploy(artifact)

        assert first.contract_address != second.contract_address
        assert w3.eth.send_raw_transaction.call_count == 2


class TestDeployFailures:

    @pytest.mark.asyncio
    async def test_network_error_on_submit(self, deployer, w3, artifact):
        w3.eth.send_raw_transaction.side_effect = ConnectionError("connection refused")

        with pytest.raises(TransactionError, match='connection refused'):
            await deployer.deploy(artifact)

        w3.eth.wait_for_transaction_receipt.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_by_node(self, deployer, w3, artifact):
        w3.eth.send_raw_transaction.side_effect = ValueError(
            {'code': -32000, 'message': 'insufficient funds for gas * price + value'}
        )

        with pytest.raises(TransactionError, match='insufficient funds'):
            await deployer.deploy(artifact)

    @pytest.mark.asyncio
    async def test_confirmation_timeout(self, deployer, w3, artifact):
        w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not in chain after 60 seconds")

        with pytest.raises(ConfirmationTimeout) as exc_info:
            await deployer.deploy(artifact)

        assert isinstance(exc_info.value, TransactionError)
        assert '60' in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_reverted_deployment(self, deployer, w3, artifact):
        w3.eth.wait_for_transaction_receipt.return_value = receipt(None, status=0)

        with pytest.raises(TransactionError, match='reverted'):
            await deployer.deploy(artifact)

    @pytest.mark.asyncio
    async def test_receipt_without_address(self, deployer, w3, artifact):
        w3.eth.wait_for_transaction_receipt.return_value = receipt(None)

        with pytest.raises(TransactionError, match='no contract address'):
            await deployer.deploy(artifact)


class TestFromProfile:

    def test_signs_with_first_key(self):
        profile = NetworkProfile(
            name='local',
            rpc_url='http://127.0.0.1:8545',
            account_keys=(TEST_PRIVATE_KEY,),
            chain_id=31337
        )

        deployer = ContractDeployer.from_profile(profile, confirmation_timeout=10)

        assert deployer.account.address == TEST_ADDRESS
        assert deployer.network == 'local'
        assert deployer.chain_id == 31337
        assert deployer.confirmation_timeout == 10

    def test_invalid_key(self):
        profile = NetworkProfile(
            name='ropsten',
            rpc_url='http://127.0.0.1:8545',
            account_keys=('0xnot-a-key',)
        )

        with pytest.raises(ConfigError, match='ropsten'):
            ContractDeployer.from_profile(profile)

    def test_unreachable_node(self, w3, account):
        w3.is_connected.return_value = False

        assert not ContractDeployer(w3, account).is_connected()
