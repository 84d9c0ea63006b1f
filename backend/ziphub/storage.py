import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import COLLECTION_DEFAULTS
from .errors import StoreCorrupt

_logger = logging.getLogger(__name__)

Mutation = Callable[[Any], Tuple[Any, Any]]


class _FairLock:
    """Mutex that grants the lock in the order it was requested."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._serving = 0

    def __enter__(self) -> "_FairLock":
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            while self._serving != ticket:
                self._cond.wait()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        with self._cond:
            self._serving += 1
            self._cond.notify_all()


class CollectionStore:
    def __init__(self, data_dir: Path, defaults: Optional[Mapping[str, Any]] = None):
        self.data_dir = Path(data_dir)
        self._defaults: Dict[str, Any] = dict(COLLECTION_DEFAULTS if defaults is None else defaults)
        self._locks: Dict[str, _FairLock] = {name: _FairLock() for name in self._defaults}

    def names(self) -> List[str]:
        return list(self._defaults)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def get(self, name: str) -> Any:
        with self._lock_for(name):
            return self._load(name)

    def mutate(self, name: str, fn: Mutation) -> Any:
        with self._lock_for(name):
            snapshot = self._load(name)
            updated, result = fn(snapshot)
            self._write(name, updated)
            return result

    def counts(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for name in self._defaults:
            snapshot = self.get(name)
            if isinstance(snapshot, dict) and "edges" in snapshot:
                totals[name] = len(snapshot["edges"])
            else:
                totals[name] = len(snapshot)
        return totals

    def _lock_for(self, name: str) -> _FairLock:
        try:
            return self._locks[name]
        except KeyError:
            raise KeyError(f"Unknown collection: {name}") from None

    def _default_for(self, name: str) -> Any:
        return copy.deepcopy(self._defaults[name])

    def _load(self, name: str) -> Any:
        path = self.path_for(name)
        if not path.exists():
            default_payload = self._default_for(name)
            self._write(name, default_payload)
            _logger.info("Initialized collection %s", name, extra={"collection": name})
            return default_payload
        try:
            return self._decode(name, path)
        except StoreCorrupt as err:
            _logger.error(
                "Collection %s could not be loaded (%s); resetting it to its default, stored records are lost",
                name,
                err.message,
                extra={"collection": name, "error_kind": err.kind},
            )
            default_payload = self._default_for(name)
            self._write(name, default_payload)
            return default_payload

    def _decode(self, name: str, path: Path) -> Any:
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as err:
            raise StoreCorrupt(str(err)) from err
        expected = type(self._defaults[name])
        if not isinstance(payload, expected):
            raise StoreCorrupt(f"expected {expected.__name__}, found {type(payload).__name__}")
        return payload

    def _write(self, name: str, payload: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
