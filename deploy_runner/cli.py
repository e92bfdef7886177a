import argparse
import os
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from requests.exceptions import RequestException
from web3.exceptions import Web3Exception

from deploy_config import NETWORKS, SOLIDITY_VERSION, ConfigError, load_environment, resolve_network
from deploy_config.lint import lint_modules, lint_networks
from deploy_modules import MODULES, ModuleBuildError, get_module
from foundry.forge import ForgeFailedError, forge_build, forge_verify_contract

from .artifacts import ArtifactError, ArtifactStore
from .deployer import DeployerError, connect, deploy_module
from .journal import DeploymentJournal, JournalError


KNOWN_ERRORS = (
    ConfigError,
    ModuleBuildError,
    ArtifactError,
    JournalError,
    DeployerError,
    ForgeFailedError,
    Web3Exception,
    RequestException,
)

# rpc urls carry the provider api key
URL = re.compile(r'(?:https?|wss?)://\S+')


@dataclass
class Action:
    name: str
    help: str
    handler: Callable[[argparse.Namespace], int]
    needs_network: bool = False
    needs_module: bool = False


def _project_location() -> str:
    return os.getenv('PROJECT_LOCATION', '.')


def _artifacts_dir() -> str:
    return os.getenv('ARTIFACTS_DIR', 'out')


def _receipt_timeout() -> int:
    return int(os.getenv('RECEIPT_TIMEOUT', '300'))


def _artifacts() -> ArtifactStore:
    return ArtifactStore(Path(_project_location()) / _artifacts_dir())


def _journal(chain_id: int) -> DeploymentJournal:
    return DeploymentJournal(Path(_project_location()) / os.getenv('DEPLOYMENTS_DIR', 'deployments'), chain_id)


def describe_error(e: Exception) -> str:
    if isinstance(e, RequestException):
        return f'rpc request failed ({type(e).__name__}), check the network url and connectivity'
    return URL.sub('<rpc url>', str(e))


def build(_: argparse.Namespace) -> int:
    forge_build(_project_location(), SOLIDITY_VERSION, out_dir=_artifacts_dir())
    print('compiled successfully')
    return 0


def deploy(args: argparse.Namespace) -> int:
    module = get_module(args.module)
    web3, account = connect(resolve_network(args.network))
    chain_id = web3.eth.chain_id

    print(f'deploying {module.id} to {args.network} (chain {chain_id}) from {account.address}')
    handles = deploy_module(web3, module, _artifacts(), account, _journal(chain_id), timeout=_receipt_timeout())

    for name, handle in handles.items():
        print(f'- {name}: {handle.contract_name} at {handle.address}')
    return 0


def verify(args: argparse.Namespace) -> int:
    api_key = os.getenv('ETHERSCAN_API_KEY')
    if not api_key:
        msg = 'ETHERSCAN_API_KEY is not set'
        raise ConfigError(msg)

    module = get_module(args.module)
    web3, _ = connect(resolve_network(args.network))
    chain_id = web3.eth.chain_id
    journal = _journal(chain_id)
    artifacts = _artifacts()

    for future in module.futures:
        address = journal.get(future.id)
        if address is None:
            print(f'- {future.id}: not deployed on chain {chain_id}, skipping')
            continue

        target = artifacts.load(future.contract_name).target
        forge_verify_contract(_project_location(), address, target, chain_id, api_key, solc_version=SOLIDITY_VERSION)
        print(f'- {future.id}: verified {address}')
    return 0


def status(args: argparse.Namespace) -> int:
    web3, _ = connect(resolve_network(args.network))
    chain_id = web3.eth.chain_id

    deployed = _journal(chain_id).all()
    if not deployed:
        print(f'nothing deployed on chain {chain_id}')
        return 0

    print(f'---- chain {chain_id} ----')
    for future_id, address in sorted(deployed.items()):
        print(f'- {future_id}: {address}')
    return 0


def lint(_: argparse.Namespace) -> int:
    issues = [*lint_networks(NETWORKS), *lint_modules(MODULES.values())]
    for issue in issues:
        print(f'- {issue}')

    if issues:
        print(f'{len(issues)} issue(s) found')
        return 1

    print('configuration looks good')
    return 0


ACTIONS = [
    Action(name='build', help='compile contracts with forge', handler=build),
    Action(name='deploy', help='deploy a module', handler=deploy, needs_network=True, needs_module=True),
    Action(name='verify', help='verify deployed contracts', handler=verify, needs_network=True, needs_module=True),
    Action(name='status', help='show journaled deployments', handler=status, needs_network=True),
    Action(name='lint', help='check networks and modules', handler=lint),
]


def make_parser(actions: Sequence[Action] | None = None) -> argparse.ArgumentParser:
    if actions is None:
        actions = ACTIONS

    parser = argparse.ArgumentParser(prog='deploy_runner')
    commands = parser.add_subparsers(dest='command', required=True)

    for action in actions:
        command = commands.add_parser(action.name, help=action.help)
        if action.needs_module:
            command.add_argument('module', choices=sorted(MODULES))
        if action.needs_network:
            command.add_argument('--network', required=True, choices=sorted(NETWORKS))
        command.set_defaults(handler=action.handler)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_environment(os.getenv('DOTENV_PATH', '.env'))
    args = make_parser().parse_args(argv)

    try:
        return args.handler(args)
    except KNOWN_ERRORS as e:
        print('error:', describe_error(e))
        return 1
    except Exception as e:
        logger.opt(exception=e).error(f'{args.command} failed unexpectedly')
        return 1
