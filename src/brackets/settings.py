"""
Data directory and tournament settings.
"""
import os

import yaml

from .errors import StorageError

DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(os.getcwd(), 'data'))

SETTINGS_FILE = 'settings.yaml'
BRACKET_FILE = 'bracket.yaml'

DEFAULT_SETTINGS = {
    'bracket_type': 'double',
    'seed': None,
}


def data_path(filename: str, data_dir: str = None) -> str:
    return os.path.join(data_dir or DATA_DIR, filename)


def load_settings(path: str = None) -> dict:
    """Load tournament settings from YAML, merged over the defaults."""
    path = path or data_path(SETTINGS_FILE)
    if not os.path.exists(path):
        return dict(DEFAULT_SETTINGS)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise StorageError(f"Cannot read settings from {path}: {e}") from e
    except yaml.YAMLError as e:
        raise StorageError(f"Failed to parse {path}: {e}") from e
    if not data:
        return dict(DEFAULT_SETTINGS)
    if not isinstance(data, dict):
        raise StorageError(f"Failed to parse {path}: expected a mapping")

    settings = data.get('tournament_settings') or {}
    if not isinstance(settings, dict):
        raise StorageError(f"Failed to parse {path}: tournament_settings must be a mapping")
    return {**DEFAULT_SETTINGS, **settings}
