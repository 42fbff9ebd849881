import json
import logging
import os
from typing import Any, Optional

from lib.logs import WithLogger


class KVStore(WithLogger):
    """Synchronous key-value persistence used for small pieces of user data."""

    def get(self, key: str, default=None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any):
        raise NotImplementedError

    def delete(self, key: str):
        raise NotImplementedError


class MemoryKVStore(KVStore):
    def __init__(self, data: Optional[dict] = None):
        super().__init__()
        self._data = dict(data or {})

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def set(self, key: str, value):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)

    def __contains__(self, key):
        return key in self._data


class JsonFileKVStore(KVStore):
    def __init__(self, file_name: str):
        super().__init__()
        self.file_name = file_name
        self._data = self._read()

    def _read(self) -> dict:
        if not os.path.exists(self.file_name):
            self.logger.info(f'Storage file "{self.file_name}" does not exist yet.')
            return {}
        try:
            with open(self.file_name, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f'Failed to read storage file "{self.file_name}": {e}. Starting empty.')
            return {}
        if not isinstance(data, dict):
            self.logger.error(f'Storage file "{self.file_name}" is not a JSON object. Starting empty.')
            return {}
        return data

    def _write(self):
        folder = os.path.dirname(self.file_name)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp_name = f'{self.file_name}.tmp'
        with open(tmp_name, 'w') as f:
            json.dump(self._data, f, indent=2)
        os.replace(tmp_name, self.file_name)

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def set(self, key: str, value):
        self._data[key] = value
        self._write()

    def delete(self, key: str):
        if self._data.pop(key, None) is not None:
            self._write()


def kv_store_from_config(cfg) -> KVStore:
    path = cfg.storage_path
    if path:
        logging.info(f'Using JSON file storage at "{path}".')
        return JsonFileKVStore(path)
    logging.info('Using in-memory storage, custom tokens will not survive a restart.')
    return MemoryKVStore()
