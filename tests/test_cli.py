import importlib
import os
from unittest.mock import MagicMock, PropertyMock

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError
from web3.exceptions import TimeExhausted

from deploy_runner import cli
from deploy_runner.deployer import DeployedContract
from foundry import forge

from . import CONTRACT_ADDRESS, PRIVATE_KEY, fake_account, fake_web3, write_artifact


@pytest.fixture
def project(monkeypatch, tmp_path):
    monkeypatch.setenv('PROJECT_LOCATION', str(tmp_path))
    monkeypatch.setenv('DOTENV_PATH', str(tmp_path / '.env'))
    monkeypatch.setenv('LOCAL_PRIVATE_KEY', PRIVATE_KEY)
    return tmp_path


@pytest.fixture
def web3(monkeypatch) -> MagicMock:
    web3 = fake_web3(chain_id=31337)
    monkeypatch.setattr(cli, 'connect', lambda _: (web3, fake_account()))
    return web3


@pytest.fixture
def popen(monkeypatch) -> MagicMock:
    popen = MagicMock()
    popen.return_value.communicate.return_value = ('ok', '')
    popen.return_value.returncode = 0
    monkeypatch.setattr(forge.subprocess, 'Popen', popen)
    monkeypatch.setattr(forge, '_forge_location', lambda: '/usr/bin/forge')
    return popen


def test_lint_shipped_configuration(project, capsys) -> None:
    assert cli.main(['lint']) == 0
    assert 'configuration looks good' in capsys.readouterr().out


def test_dotenv_is_loaded_by_main_only(project, monkeypatch) -> None:
    (project / '.env').write_text('ETHERSCAN_API_KEY=from-dotenv\n')
    monkeypatch.delenv('ETHERSCAN_API_KEY', raising=False)

    importlib.reload(cli)
    assert 'ETHERSCAN_API_KEY' not in os.environ

    cli.main(['lint'])
    assert os.environ['ETHERSCAN_API_KEY'] == 'from-dotenv'
    monkeypatch.delenv('ETHERSCAN_API_KEY')


def test_build(project, popen, capsys) -> None:
    assert cli.main(['build']) == 0

    kwargs = popen.call_args.kwargs
    assert kwargs['args'] == ['/usr/bin/forge', 'build', '--use', '0.8.22', '--out', 'out']
    assert kwargs['cwd'] == str(project)
    assert 'compiled successfully' in capsys.readouterr().out


def test_build_failure(project, popen, capsys) -> None:
    popen.return_value.returncode = 1
    popen.return_value.communicate.return_value = ('', 'Compiler run failed')

    assert cli.main(['build']) == 1
    assert capsys.readouterr().out.startswith('error: forge build failed to run')


def test_missing_credentials(project, monkeypatch, capsys) -> None:
    monkeypatch.delenv('ALCHEMY_API_KEY', raising=False)
    monkeypatch.setenv('PRIVATE_KEY', PRIVATE_KEY)

    assert cli.main(['deploy', 'assetModule', '--network', 'sepolia']) == 1
    out = capsys.readouterr().out
    assert out.startswith('error: network sepolia: missing environment variables: ALCHEMY_API_KEY')
    assert PRIVATE_KEY not in out


def test_unknown_module_is_rejected(project) -> None:
    with pytest.raises(SystemExit):
        cli.main(['deploy', 'otherModule', '--network', 'sepolia'])


def test_deploy_prints_handles(project, web3, monkeypatch, capsys) -> None:
    def fake_deploy(web3, module, artifacts, account, journal, *, timeout):
        assert journal.chain_id == 31337
        assert timeout == 300
        return {
            'asset': DeployedContract(
                future_id='assetModule#DigitalAssetMarketplace',
                contract_name='DigitalAssetMarketplace',
                address=CONTRACT_ADDRESS,
                abi=[],
            )
        }

    monkeypatch.setattr(cli, 'deploy_module', fake_deploy)

    assert cli.main(['deploy', 'assetModule', '--network', 'localhost']) == 0
    out = capsys.readouterr().out
    assert f'- asset: DigitalAssetMarketplace at {CONTRACT_ADDRESS}' in out
    assert PRIVATE_KEY not in out


def test_receipt_timeout_is_a_known_error(project, web3, capsys) -> None:
    write_artifact(project / 'out', 'DigitalAssetMarketplace.sol', 'DigitalAssetMarketplace')
    web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted('not mined yet')

    assert cli.main(['deploy', 'assetModule', '--network', 'localhost']) == 1
    out = capsys.readouterr().out
    assert out.startswith('error: assetModule#DigitalAssetMarketplace: no receipt for')
    assert 'run deploy again' in out


def test_connection_error_hides_rpc_url(project, web3, monkeypatch, capsys) -> None:
    monkeypatch.setenv('ALCHEMY_API_KEY', 'secret-alchemy-key')
    monkeypatch.setenv('PRIVATE_KEY', PRIVATE_KEY)
    leaked_url = 'https://eth-sepolia.g.alchemy.com/v2/secret-alchemy-key'
    error = RequestsConnectionError(f'Max retries exceeded with url: {leaked_url}')
    type(web3.eth).chain_id = PropertyMock(side_effect=error)

    assert cli.main(['status', '--network', 'sepolia']) == 1
    out = capsys.readouterr().out
    assert out.startswith('error: rpc request failed (ConnectionError)')
    assert 'secret-alchemy-key' not in out


def test_web3_error_message_is_redacted() -> None:
    error = TimeExhausted('request to https://eth-sepolia.g.alchemy.com/v2/secret-alchemy-key timed out')
    assert cli.describe_error(error) == 'request to <rpc url> timed out'


def test_status(project, web3, capsys) -> None:
    assert cli.main(['status', '--network', 'localhost']) == 0
    assert 'nothing deployed on chain 31337' in capsys.readouterr().out

    cli._journal(31337).record('assetModule#DigitalAssetMarketplace', CONTRACT_ADDRESS)
    assert cli.main(['status', '--network', 'localhost']) == 0
    assert f'- assetModule#DigitalAssetMarketplace: {CONTRACT_ADDRESS}' in capsys.readouterr().out


def test_verify_requires_api_key(project, monkeypatch, capsys) -> None:
    monkeypatch.delenv('ETHERSCAN_API_KEY', raising=False)

    assert cli.main(['verify', 'assetModule', '--network', 'sepolia']) == 1
    assert 'ETHERSCAN_API_KEY is not set' in capsys.readouterr().out


def test_verify_journaled_contract(project, web3, popen, monkeypatch, capsys) -> None:
    monkeypatch.setenv('ETHERSCAN_API_KEY', 'etherscan-key')
    write_artifact(project / 'out', 'Marketplace.sol', 'DigitalAssetMarketplace', source_path='src/Marketplace.sol')
    cli._journal(31337).record('assetModule#DigitalAssetMarketplace', CONTRACT_ADDRESS)

    assert cli.main(['verify', 'assetModule', '--network', 'localhost']) == 0

    kwargs = popen.call_args.kwargs
    assert kwargs['args'] == [
        '/usr/bin/forge',
        'verify-contract',
        '--chain',
        '31337',
        '--watch',
        '--compiler-version',
        '0.8.22',
        CONTRACT_ADDRESS,
        'src/Marketplace.sol:DigitalAssetMarketplace',
    ]
    assert kwargs['env']['ETHERSCAN_API_KEY'] == 'etherscan-key'
    assert kwargs['cwd'] == str(project)
    assert f'- assetModule#DigitalAssetMarketplace: verified {CONTRACT_ADDRESS}' in capsys.readouterr().out


def test_verify_skips_undeployed(project, web3, popen, monkeypatch, capsys) -> None:
    monkeypatch.setenv('ETHERSCAN_API_KEY', 'etherscan-key')

    assert cli.main(['verify', 'upgradeModule', '--network', 'localhost']) == 0
    popen.assert_not_called()
    assert '- upgradeModule#DigitalArtMarketplace: not deployed on chain 31337, skipping' in capsys.readouterr().out


def test_unexpected_error_is_contained(project, monkeypatch) -> None:
    def explode(_):
        raise RuntimeError('boom')

    monkeypatch.setattr(cli, 'ACTIONS', [cli.Action(name='lint', help='', handler=explode)])

    assert cli.main(['lint']) == 1
