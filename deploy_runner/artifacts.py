import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class ArtifactError(Exception):
    """Raised when a compiled contract artifact cannot be loaded."""


@dataclass(frozen=True)
class Artifact:
    contract_name: str
    source_file: str
    abi: list[dict[str, Any]]
    bytecode: str
    source_path: str | None = None  # e.g. 'src/Marketplace.sol', from the compiler metadata

    @property
    def target(self) -> str:
        if self.source_path is None:
            return self.contract_name
        return f'{self.source_path}:{self.contract_name}'


def _source_path(cache: dict[str, Any], contract_name: str) -> str | None:
    metadata = cache.get('metadata')
    if not isinstance(metadata, dict):
        return None

    compilation_target = metadata.get('settings', {}).get('compilationTarget', {})
    for source_path, name in compilation_target.items():
        if name == contract_name:
            return source_path
    return None


class ArtifactStore:
    def __init__(self, out_dir: str | Path) -> None:
        self.out_dir = Path(out_dir)

    def _find(self, target: str) -> Path:
        if ':' in target:
            file, contract = target.split(':', 1)
            path = self.out_dir / Path(file).name / f'{contract}.json'
            if not path.is_file():
                msg = f'no artifact for {target} in {self.out_dir}, did you run build?'
                raise ArtifactError(msg)
            return path

        candidates = sorted(self.out_dir.glob(f'*/{target}.json'))
        if not candidates:
            msg = f'no artifact for {target} in {self.out_dir}, did you run build?'
            raise ArtifactError(msg)
        if len(candidates) > 1:
            files = ', '.join(path.parent.name for path in candidates)
            msg = f'ambiguous contract name {target}, found in {files}; use File.sol:{target}'
            raise ArtifactError(msg)
        return candidates[0]

    def load(self, target: str) -> Artifact:
        path = self._find(target)
        try:
            with path.open('r') as f:
                cache = json.load(f)
            abi = cache['abi']
            bytecode = cache['bytecode']['object']
        except (OSError, ValueError, KeyError, TypeError) as err:
            msg = f'malformed artifact {path}: {err}'
            raise ArtifactError(msg) from err

        if bytecode in ('', '0x'):
            msg = f'{target} has no bytecode, is it abstract or an interface?'
            raise ArtifactError(msg)

        if not bytecode.startswith('0x'):
            bytecode = '0x' + bytecode

        return Artifact(
            contract_name=path.stem,
            source_file=path.parent.name,
            abi=abi,
            bytecode=bytecode,
            source_path=_source_path(cache, path.stem),
        )
