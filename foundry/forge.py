import os
import shutil
import subprocess

from loguru import logger


class ForgeFailedError(Exception):
    """Exception raised when the forge command fails to execute."""


def _forge_location() -> str:
    forge_location = shutil.which('forge')
    if forge_location is None:
        forge_location = os.path.expanduser('~/.foundry/bin/forge')
    return forge_location


def _run_forge(args: list[str], project_location: str, env: dict[str, str] | None = None) -> str:
    if env is None:
        env = {}

    proc = subprocess.Popen(
        args=[_forge_location(), *args],
        env={
            'PATH': os.getenv('PATH', '/usr/bin'),
            'HOME': os.getenv('HOME', '/tmp'),
        }
        | env,
        cwd=project_location,
        text=True,
        encoding='utf8',
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    stdout, stderr = proc.communicate()

    if proc.returncode != 0:
        msg = f'forge {args[0]} failed to run: {stdout!r}, {stderr!r}'
        raise ForgeFailedError(msg)

    return stdout


def forge_build(project_location: str, solc_version: str, out_dir: str = 'out') -> str:
    logger.info(f'compiling {project_location} with solc {solc_version}')
    return _run_forge(['build', '--use', solc_version, '--out', out_dir], project_location)


def forge_verify_contract(
    project_location: str,
    address: str,
    target: str,  # 'ContractFile.sol:ContractName' or 'ContractName'
    chain_id: int,
    api_key: str,
    solc_version: str | None = None,
) -> str:
    args = ['verify-contract', '--chain', str(chain_id), '--watch']
    if solc_version is not None:
        args += ['--compiler-version', solc_version]
    args += [address, target]

    logger.info(f'verifying {target} at {address} on chain {chain_id}')
    # the key goes through the environment so it never shows up in the process list
    return _run_forge(args, project_location, env={'ETHERSCAN_API_KEY': api_key})
