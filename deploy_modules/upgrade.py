from .builder import build_module


upgrade_module = build_module(
    'upgradeModule',
    lambda m: {'assetupgrade': m.contract('DigitalArtMarketplace')},
)
