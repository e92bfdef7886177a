from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


class ModuleBuildError(Exception):
    """Raised when a deployment module declaration is invalid."""


@dataclass(frozen=True)
class ContractFuture:
    id: str  # '<module id>#<local id>'
    module_id: str
    contract_name: str  # 'Name' or 'File.sol:Name'
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class Module:
    id: str
    futures: tuple[ContractFuture, ...]
    results: Mapping[str, ContractFuture]


class ModuleBuilder:
    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        self._futures: dict[str, ContractFuture] = {}

    def contract(
        self,
        contract_name: str,
        args: tuple[Any, ...] | list[Any] = (),
        *,
        id: str | None = None,  # noqa: A002
    ) -> ContractFuture:
        if not contract_name:
            msg = f'{self.module_id}: contract name must not be empty'
            raise ModuleBuildError(msg)

        local_id = id or contract_name.rsplit(':', 1)[-1]
        future_id = f'{self.module_id}#{local_id}'
        if future_id in self._futures:
            msg = f'duplicate future id: {future_id}, pass an explicit id to deploy the same contract twice'
            raise ModuleBuildError(msg)

        future = ContractFuture(id=future_id, module_id=self.module_id, contract_name=contract_name, args=tuple(args))
        self._futures[future_id] = future
        return future

    def owns(self, future: object) -> bool:
        return isinstance(future, ContractFuture) and self._futures.get(future.id) is future

    @property
    def futures(self) -> tuple[ContractFuture, ...]:
        return tuple(self._futures.values())


def build_module(module_id: str, factory: Callable[[ModuleBuilder], Mapping[str, ContractFuture]]) -> Module:
    if not module_id.isidentifier():
        msg = f'invalid module id: {module_id!r}'
        raise ModuleBuildError(msg)

    builder = ModuleBuilder(module_id)
    results = factory(builder)
    if not isinstance(results, Mapping):
        msg = f'{module_id}: module factory must return a mapping of name to contract'
        raise ModuleBuildError(msg)

    for name, future in results.items():
        if not isinstance(name, str) or not name.isidentifier():
            msg = f'{module_id}: invalid result name: {name!r}'
            raise ModuleBuildError(msg)
        if not builder.owns(future):
            msg = f'{module_id}: result {name} is not a contract declared by this module'
            raise ModuleBuildError(msg)

    return Module(id=module_id, futures=builder.futures, results=MappingProxyType(dict(results)))
