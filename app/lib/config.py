import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Tuple

import yaml
from dotenv import load_dotenv

from lib.date_utils import parse_timespan_to_seconds
from lib.path import get_app_path, get_project_path


class ConfigPathNotFound(LookupError):
    pass


class SubConfig:
    """
    Read-only view over a nested dict/list loaded from YAML.
    Paths are dotted: "web3.ethereum.rpc"; list items are addressed by index: "foo.2.x".
    """

    def __init__(self, config_data, parent_path=''):
        self._root_config = config_data
        self.parent_path = parent_path

    def _full_path(self, path) -> str:
        return f'{self.parent_path}.{path}' if self.parent_path else str(path)

    def _walk(self, path):
        components = [path] if isinstance(path, int) else [c.strip() for c in path.split('.')]
        node = self._root_config
        for component in components:
            if isinstance(node, (list, tuple)):
                try:
                    node = node[int(component)]
                except (ValueError, IndexError):
                    raise ConfigPathNotFound(self._full_path(path))
            elif isinstance(node, dict) and component in node:
                node = node[component]
            else:
                raise ConfigPathNotFound(self._full_path(path))
        return node

    def get(self, path=None, default=None, pure=False):
        if path is None or path == '':
            return self._root_config

        try:
            node = self._walk(path)
        except ConfigPathNotFound:
            if default is None:
                raise ConfigPathNotFound(f'Config path "{self._full_path(path)}" not found!')
            logging.debug(f'Config path "{self._full_path(path)}" not found! Using default value: {default}')
            return default

        # containers are wrapped unless the caller wants raw data or gave a primitive default
        if isinstance(node, (list, tuple, dict)) and not pure and (default is None or isinstance(default, SubConfig)):
            return SubConfig(node, parent_path=self._full_path(path))
        return node

    def get_pure(self, path=None, default=None) -> Any:
        return self.get(path, default, pure=True)

    def as_int(self, path=None, default=None) -> int:
        return int(self.get(path, default))

    def as_str(self, path=None, default=None) -> str:
        return str(self.get(path, default))

    def as_bool(self, path=None, default=None) -> bool:
        value = self.get(path, default)
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)

    def as_list(self, path=None, default=None) -> list:
        data = self.get_pure(path, default)
        if isinstance(data, (str, int, float)):
            return [data]
        return list(data or [])

    def as_interval(self, path=None, default=None) -> float:
        return parse_timespan_to_seconds(self.as_str(path, default))

    def __str__(self):
        return str(self._root_config)

    def __getattr__(self, item) -> 'SubConfig':
        if item.startswith('_'):
            raise AttributeError(item)
        return self.get(item)

    def __getitem__(self, item) -> 'SubConfig':
        return self.get(item)


class Config(SubConfig):
    DEFAULT_ENV_FILE = '.env'

    DEFAULT_CONFIG_FILES = [
        '/config/config.yaml',
        '../config.yaml',
        'config.yaml',
    ]

    def _load_env(self):
        for env_file in (self.DEFAULT_ENV_FILE, f'../{self.DEFAULT_ENV_FILE}'):
            if os.path.exists(env_file):
                load_dotenv(env_file)
                return
        logging.debug('No env file found, relying on the process environment.')

    def _locate(self, name=None) -> str:
        if name:
            return name
        if len(sys.argv) >= 2 and 'pytest' not in sys.argv[0] and sys.argv[1].endswith('.yaml'):
            return sys.argv[1]
        for config_file in self.DEFAULT_CONFIG_FILES + [os.path.join(get_project_path(), 'config.yaml')]:
            if Path(config_file).exists():
                return config_file
        raise FileNotFoundError('No config file found! Copy "config.example.yaml" to "config.yaml".')

    def __init__(self, name=None, data=None):
        logging.debug(f'App path is "{get_app_path()}"')
        self._load_env()

        self._config_name = None
        if data is None:
            self._config_name = self._locate(name)
            logging.info(f'Loading config from "{self._config_name}".')
            with open(self._config_name, 'r') as f:
                data = yaml.load(f, Loader=yaml.SafeLoader)

        super().__init__(data or {})

    @property
    def aggregator_api_key(self) -> str:
        # the environment wins over the file
        return os.environ.get('AGGREGATOR_API_KEY') or self.as_str('aggregator.api_key', '')

    @property
    def default_network(self) -> str:
        return self.as_str('wallet.default_network', 'ethereum')

    @property
    def strict_chain_id(self) -> bool:
        return self.as_bool('wallet.strict_chain_id', False)

    @property
    def is_debug_mode(self) -> bool:
        return self.as_bool('debug_mode', False)

    @property
    def log_level(self) -> str:
        return self.as_str('logs.level', 'INFO').upper().strip()

    @property
    def log_style(self) -> str:
        return self.as_str('logs.style', 'colorful')

    @property
    def storage_path(self) -> str:
        return self.as_str('storage.path', '')

    def endpoint_overrides(self, network_key: str) -> Tuple[str, List[str]]:
        """(primary, backups) from "web3.<network_key>", empty values where nothing is configured."""
        primary = self.as_str(f'web3.{network_key}.rpc', '')
        backups = [str(b) for b in self.as_list(f'web3.{network_key}.backup_rpc', [])]
        return primary, backups
