from .builder import build_module


asset_module = build_module(
    'assetModule',
    lambda m: {'asset': m.contract('DigitalAssetMarketplace')},
)
