from dataclasses import dataclass
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError, TimeExhausted, TransactionNotFound
from web3.types import TxReceipt

from deploy_config.types import NetworkConfig
from deploy_modules.builder import ContractFuture, Module

from .artifacts import ArtifactStore
from .journal import DeploymentJournal


DEFAULT_RECEIPT_TIMEOUT = 300


class DeployerError(Exception):
    """Custom exception for deployer errors."""


@dataclass(frozen=True)
class DeployedContract:
    future_id: str
    contract_name: str
    address: str
    abi: list[dict[str, Any]]

    def bind(self, web3: Web3) -> Contract:
        return web3.eth.contract(address=Web3.to_checksum_address(self.address), abi=self.abi)


def connect(network: NetworkConfig) -> tuple[Web3, LocalAccount]:
    url = network['url']
    if url.startswith(('ws://', 'wss://')):
        web3 = Web3(Web3.LegacyWebSocketProvider(url))
    else:
        web3 = Web3(Web3.HTTPProvider(url))

    account: LocalAccount = Account.from_key(network['accounts'][0])
    return web3, account


def _has_code(web3: Web3, address: str) -> bool:
    return len(web3.eth.get_code(Web3.to_checksum_address(address))) > 0


def _is_known_transaction(web3: Web3, tx_hash: str) -> bool:
    try:
        web3.eth.get_transaction(tx_hash)
    except TransactionNotFound:
        return False
    return True


def _send_deployment(
    web3: Web3,
    future: ContractFuture,
    abi: list[dict[str, Any]],
    bytecode: str,
    account: LocalAccount,
) -> str:
    factory = web3.eth.contract(abi=abi, bytecode=bytecode)
    try:
        tx = factory.constructor(*future.args).build_transaction(
            {
                'from': account.address,
                'nonce': web3.eth.get_transaction_count(account.address, 'pending'),
                'chainId': web3.eth.chain_id,
            }
        )
    except ContractLogicError as err:
        msg = f'{future.id}: constructor would revert: {err}'
        raise DeployerError(msg) from err

    signed = account.sign_transaction(tx)
    tx_hash = Web3.to_hex(web3.eth.send_raw_transaction(signed.raw_transaction))
    logger.info(f'{future.id}: sent deployment transaction {tx_hash}')
    return tx_hash


def _contract_address(future: ContractFuture, tx_hash: str, receipt: TxReceipt) -> str:
    if receipt['status'] != 1:
        msg = f'{future.id}: deployment transaction {tx_hash} reverted'
        raise DeployerError(msg)

    address = receipt.get('contractAddress')
    if not address:
        msg = f'{future.id}: receipt for {tx_hash} has no contract address'
        raise DeployerError(msg)

    return str(address)


def _deploy_future(
    web3: Web3,
    future: ContractFuture,
    abi: list[dict[str, Any]],
    bytecode: str,
    account: LocalAccount,
    journal: DeploymentJournal,
    timeout: float,
) -> str:
    tx_hash = journal.get_pending(future.id)
    if tx_hash is not None and not _is_known_transaction(web3, tx_hash):
        logger.warning(f'{future.id}: pending transaction {tx_hash} was dropped, sending a new one')
        tx_hash = None

    if tx_hash is None:
        tx_hash = _send_deployment(web3, future, abi, bytecode, account)
        journal.record_pending(future.id, tx_hash)
    else:
        logger.info(f'{future.id}: resuming wait for pending transaction {tx_hash}')

    try:
        receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    except TimeExhausted as err:
        # left pending, the next run waits for the same transaction instead of sending another
        msg = f'{future.id}: no receipt for {tx_hash} after {timeout} seconds, run deploy again to keep waiting'
        raise DeployerError(msg) from err

    journal.clear_pending(future.id)
    return _contract_address(future, tx_hash, receipt)


def deploy_module(
    web3: Web3,
    module: Module,
    artifacts: ArtifactStore,
    account: LocalAccount,
    journal: DeploymentJournal,
    *,
    timeout: float = DEFAULT_RECEIPT_TIMEOUT,
) -> dict[str, DeployedContract]:
    deployed: dict[str, DeployedContract] = {}

    for future in module.futures:
        artifact = artifacts.load(future.contract_name)

        address = journal.get(future.id)
        if address is not None and _has_code(web3, address):
            logger.info(f'{future.id}: already deployed at {address}, reusing')
        else:
            if address is not None:
                logger.warning(f'{future.id}: journaled address {address} has no code, redeploying')
            address = _deploy_future(web3, future, artifact.abi, artifact.bytecode, account, journal, timeout)
            journal.record(future.id, address)
            logger.info(f'{future.id}: deployed {artifact.contract_name} at {address}')

        deployed[future.id] = DeployedContract(
            future_id=future.id,
            contract_name=artifact.contract_name,
            address=address,
            abi=artifact.abi,
        )

    return {name: deployed[future.id] for name, future in module.results.items()}
