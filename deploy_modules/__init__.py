from .asset import asset_module
from .builder import ContractFuture, Module, ModuleBuildError, ModuleBuilder, build_module
from .upgrade import upgrade_module


MODULES: dict[str, Module] = {module.id: module for module in (asset_module, upgrade_module)}


def get_module(module_id: str) -> Module:
    try:
        return MODULES[module_id]
    except KeyError:
        msg = f'unknown module: {module_id} (known: {", ".join(sorted(MODULES))})'
        raise ModuleBuildError(msg) from None


__all__ = [
    'MODULES',
    'ContractFuture',
    'Module',
    'ModuleBuildError',
    'ModuleBuilder',
    'asset_module',
    'build_module',
    'get_module',
    'upgrade_module',
]
