import json
from pathlib import Path
from unittest.mock import MagicMock


# well-known anvil development key, holds no real funds
PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
DEPLOYER_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'
CONTRACT_ADDRESS = '0x5FbDB2315678afecb367f032d93F642f64180aa3'
TX_HASH = b'\x12' * 32
TX_HASH_HEX = '0x' + '12' * 32

HELLO_ABI = [{'type': 'constructor', 'inputs': [], 'stateMutability': 'nonpayable'}]


def write_artifact(
    out_dir: Path, file: str, contract: str, bytecode: str = '0x6080604052', source_path: str | None = None
) -> Path:
    path = out_dir / file / f'{contract}.json'
    path.parent.mkdir(parents=True, exist_ok=True)

    cache: dict = {'abi': HELLO_ABI, 'bytecode': {'object': bytecode}}
    if source_path is not None:
        cache['metadata'] = {'settings': {'compilationTarget': {source_path: contract}}}
    path.write_text(json.dumps(cache))
    return path


def fake_web3(chain_id: int = 11155111, receipt: dict | None = None, code: bytes = b'') -> MagicMock:
    if receipt is None:
        receipt = {'status': 1, 'contractAddress': CONTRACT_ADDRESS}

    web3 = MagicMock()
    web3.eth.chain_id = chain_id
    web3.eth.get_transaction_count.return_value = 0
    web3.eth.get_code.return_value = code
    web3.eth.send_raw_transaction.return_value = TX_HASH
    web3.eth.wait_for_transaction_receipt.return_value = receipt
    web3.eth.contract.return_value.constructor.return_value.build_transaction.return_value = {'data': '0x6080604052'}
    return web3


def fake_account() -> MagicMock:
    account = MagicMock()
    account.address = DEPLOYER_ADDRESS
    account.sign_transaction.return_value.raw_transaction = b'\x02signed'
    return account
