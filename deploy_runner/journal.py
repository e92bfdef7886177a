import json
import os
from pathlib import Path

from filelock import FileLock


class JournalError(Exception):
    """Raised when the deployment journal cannot be read."""


class DeploymentJournal:
    def __init__(self, root: str | Path, chain_id: int) -> None:
        self.chain_id = chain_id
        self.directory = Path(root) / f'chain-{chain_id}'
        self.path = self.directory / 'deployed_addresses.json'
        # sent but not yet confirmed deployment transactions, future id -> tx hash
        self.pending_path = self.directory / 'pending_transactions.json'
        self.lock = FileLock(str(self.directory / '.journal.lock'))

    @staticmethod
    def _read(path: Path) -> dict[str, str]:
        if not path.is_file():
            return {}

        try:
            with path.open('r') as f:
                data = json.load(f)
        except ValueError as err:
            msg = f'corrupt deployment journal {path}: {err}'
            raise JournalError(msg) from err

        if not isinstance(data, dict):
            msg = f'corrupt deployment journal {path}: expected an object'
            raise JournalError(msg)
        return data

    @staticmethod
    def _write(path: Path, data: dict[str, str]) -> None:
        tmp = path.with_suffix('.json.tmp')
        with tmp.open('w') as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write('\n')
        os.replace(tmp, path)

    def all(self) -> dict[str, str]:
        return self._read(self.path)

    def get(self, future_id: str) -> str | None:
        return self._read(self.path).get(future_id)

    def get_pending(self, future_id: str) -> str | None:
        return self._read(self.pending_path).get(future_id)

    def record_pending(self, future_id: str, tx_hash: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with self.lock:
            pending = self._read(self.pending_path)
            pending[future_id] = tx_hash
            self._write(self.pending_path, pending)

    def clear_pending(self, future_id: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with self.lock:
            pending = self._read(self.pending_path)
            if pending.pop(future_id, None) is not None:
                self._write(self.pending_path, pending)

    def record(self, future_id: str, address: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with self.lock:
            data = self._read(self.path)
            data[future_id] = address
            self._write(self.path, data)

            pending = self._read(self.pending_path)
            if pending.pop(future_id, None) is not None:
                self._write(self.pending_path, pending)
