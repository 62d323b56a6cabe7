#=======================================================================================================
# Flat-file JSON storage: one document per collection under DATA_DIR
#=======================================================================================================
import json
import os
import tempfile
import threading
from contextlib import contextmanager

from logger import store_logger


class FlatFileStore:
    """
    Loads and saves named JSON collections.

    Every document is either a list of records or a single object. Writes go
    through a temp file in the same directory followed by os.replace, so a
    crash mid-write leaves the previous document intact. Callers that do a
    read-modify-write cycle wrap it in ``store.lock(name, ...)``.
    """

    def __init__(self, data_dir=None):
        self.data_dir = None
        self._locks = {}
        self._locks_guard = threading.Lock()
        if data_dir:
            self.configure(data_dir)

    def init_app(self, app):
        self.configure(app.config["DATA_DIR"])
        app.extensions["flat_file_store"] = self

    def configure(self, data_dir):
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)

    def path_for(self, name):
        return os.path.join(self.data_dir, f"{name}.json")

    # -------------------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------------------
    def _lock_for(self, name):
        with self._locks_guard:
            if name not in self._locks:
                self._locks[name] = threading.RLock()
            return self._locks[name]

    @contextmanager
    def lock(self, *names):
        """Hold the write locks of the given collections, taken in sorted order."""
        acquired = []
        try:
            for name in sorted(set(names)):
                lock = self._lock_for(name)
                lock.acquire()
                acquired.append(lock)
            yield self
        finally:
            for lock in reversed(acquired):
                lock.release()

    # -------------------------------------------------------------------------------------
    # Reads: faults are logged and come back empty
    # -------------------------------------------------------------------------------------
    def _read(self, name):
        path = self.path_for(name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                content = fh.read()
            if not content.strip():
                return None
            return json.loads(content)
        except (OSError, ValueError) as e:
            store_logger.error(f"Failed to read collection {name}: {e}")
            return None

    def load(self, name, model=None):
        data = self._read(name)
        if data is None:
            return []
        if not isinstance(data, list):
            store_logger.error(f"Collection {name} is not a list document")
            return []
        if model is None:
            return data
        return [model.from_dict(item) for item in data if isinstance(item, dict)]

    def load_single(self, name, model=None):
        data = self._read(name)
        if not isinstance(data, dict):
            return None
        return model.from_dict(data) if model is not None else data

    # -------------------------------------------------------------------------------------
    # Writes: faults are logged and re-raised
    # -------------------------------------------------------------------------------------
    @staticmethod
    def _plain(record):
        return record.to_dict() if hasattr(record, "to_dict") else record

    def _write(self, name, document):
        path = self.path_for(name)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except Exception as e:
            store_logger.error(f"Failed to write collection {name}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def save(self, name, records):
        with self.lock(name):
            self._write(name, [self._plain(r) for r in records])

    def save_single(self, name, record):
        with self.lock(name):
            self._write(name, self._plain(record))

    def next_id(self, name, key="id"):
        ids = []
        for item in self.load(name):
            try:
                ids.append(int(item.get(key)))
            except (TypeError, ValueError):
                continue
        return max(ids) + 1 if ids else 1
