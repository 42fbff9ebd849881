import os


def get_app_path():
    return os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))


def get_project_path():
    return os.path.dirname(get_app_path())


def get_data_path():
    return os.path.join(get_app_path(), 'data')


def data_file(name: str) -> str:
    """Absolute path of a bundled resource like "erc20.abi.json"."""
    path = os.path.join(get_data_path(), name)
    if not os.path.isfile(path):
        raise FileNotFoundError(f'Bundled data file "{name}" is missing in {get_data_path()}')
    return path
