import os
import re
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv
from loguru import logger

from .networks import NETWORKS
from .types import NetworkConfig, NetworkDeclaration


PLACEHOLDER = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')
PRIVATE_KEY = re.compile(r'(0x)?[0-9a-fA-F]{64}')
URL_SCHEMES = ('http', 'https', 'ws', 'wss')


class ConfigError(Exception):
    """Raised when a network configuration cannot be resolved."""


def placeholders(template: str) -> list[str]:
    return PLACEHOLDER.findall(template)


def substitute(template: str, environ: Mapping[str, str]) -> str:
    missing = [name for name in placeholders(template) if not environ.get(name)]
    if missing:
        msg = f'missing environment variables: {", ".join(sorted(set(missing)))}'
        raise ConfigError(msg)

    return PLACEHOLDER.sub(lambda match: environ[match.group(1)], template)


def is_well_formed_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in URL_SCHEMES and bool(parsed.hostname)


def is_private_key(value: str) -> bool:
    return PRIVATE_KEY.fullmatch(value) is not None


def load_environment(path: str | Path = '.env') -> bool:
    # variables already exported in the shell take precedence over the file
    loaded = load_dotenv(path, override=False)
    if loaded:
        logger.debug(f'loaded environment from {path}')
    return loaded


def resolve_declaration(name: str, declaration: NetworkDeclaration, environ: Mapping[str, str]) -> NetworkConfig:
    try:
        url = substitute(declaration['url'], environ)
        accounts = [substitute(account, environ) for account in declaration['accounts']]
    except ConfigError as err:
        msg = f'network {name}: {err}'
        raise ConfigError(msg) from err

    if not is_well_formed_url(url):
        msg = f'network {name}: rpc url is not a well-formed endpoint'
        raise ConfigError(msg)

    if len(accounts) != 1:
        msg = f'network {name}: expected exactly one account, got {len(accounts)}'
        raise ConfigError(msg)

    for i, account in enumerate(accounts):
        if not is_private_key(account):
            msg = f'network {name}: account #{i} is not a 32-byte hex private key'
            raise ConfigError(msg)

    return {'name': name, 'url': url, 'accounts': accounts}


def resolve_network(
    name: str,
    environ: Mapping[str, str] | None = None,
    networks: Mapping[str, NetworkDeclaration] = NETWORKS,
) -> NetworkConfig:
    if environ is None:
        environ = os.environ

    if name not in networks:
        msg = f'unknown network: {name} (known: {", ".join(sorted(networks))})'
        raise ConfigError(msg)

    return resolve_declaration(name, networks[name], environ)
