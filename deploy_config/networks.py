from .types import NetworkDeclaration


SOLIDITY_VERSION = '0.8.22'

NETWORKS: dict[str, NetworkDeclaration] = {
    'sepolia': {
        'url': 'https://eth-sepolia.g.alchemy.com/v2/${ALCHEMY_API_KEY}',
        'accounts': ['${PRIVATE_KEY}'],
    },
    'localhost': {
        'url': 'http://127.0.0.1:8545',
        'accounts': ['${LOCAL_PRIVATE_KEY}'],
    },
}
