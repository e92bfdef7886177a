from .config import ConfigError, load_environment, resolve_network
from .networks import NETWORKS, SOLIDITY_VERSION
from .types import NetworkConfig, NetworkDeclaration


__all__ = [
    'NETWORKS',
    'SOLIDITY_VERSION',
    'ConfigError',
    'NetworkConfig',
    'NetworkDeclaration',
    'load_environment',
    'resolve_network',
]
