"""
Environment Management Module for bootkit

Uses python-dotenv for environment variable management.

Usage:
    from bootkit.env import env

    print(env.home_dir)
    print(env.logs_dir)
    print(env.package_manager)
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from . import __version__


DEFAULT_RELEASES_URL = 'https://api.github.com/repos/bootkit-dev/bootkit/releases/latest'


def _bootkit_home() -> Path:
    home = os.getenv('BOOTKIT_HOME')
    if home:
        return Path(os.path.expanduser(home))
    return Path.home() / '.bootkit'


def load_env_file() -> bool:
    """Load <BOOTKIT_HOME>/.env without overriding variables already set"""
    env_file = _bootkit_home() / '.env'
    if env_file.exists():
        return load_dotenv(env_file)
    return False


class EnvConfig:
    """Environment configuration object"""

    @property
    def home_dir(self) -> str:
        return str(_bootkit_home())

    @property
    def env_file(self) -> str:
        return str(_bootkit_home() / '.env')

    @property
    def bin_dir(self) -> str:
        return str(_bootkit_home() / 'bin')

    @property
    def extensions_dir(self) -> str:
        return str(_bootkit_home() / 'extensions')

    @property
    def logs_dir(self) -> str:
        logs_dir = os.getenv('BOOTKIT_PATHS_LOGS_DIR', 'logs')
        if not os.path.isabs(logs_dir):
            logs_dir = str(_bootkit_home() / logs_dir)
        return logs_dir

    @property
    def package_manager(self) -> str:
        """Base install command, the tool name and flags are appended"""
        return os.getenv('BOOTKIT_PACKAGE_MANAGER', 'brew install')

    @property
    def default_config(self) -> str:
        return os.getenv('BOOTKIT_DEFAULT_CONFIG', 'config.yaml')

    @property
    def releases_url(self) -> str:
        return os.getenv('BOOTKIT_RELEASES_URL', DEFAULT_RELEASES_URL)

    @property
    def log_level(self) -> str:
        return os.getenv('BOOTKIT_LOGGING_CONSOLE_LEVEL', 'INFO')

    @property
    def log_file_enabled(self) -> bool:
        return os.getenv('BOOTKIT_LOGGING_FILE_ENABLED', 'false').lower() == 'true'

    @property
    def log_file_level(self) -> str:
        return os.getenv('BOOTKIT_LOGGING_FILE_LEVEL', 'DEBUG')

    @property
    def log_simple_format(self) -> bool:
        return os.getenv('BOOTKIT_LOGGING_CONSOLE_SIMPLE_FORMAT', 'true').lower() == 'true'

    @property
    def log_max_files(self) -> int:
        return int(os.getenv('BOOTKIT_LOGGING_MAX_FILES', '5'))

    @property
    def log_max_size(self) -> str:
        return os.getenv('BOOTKIT_LOGGING_MAX_SIZE', '10MB')

    @property
    def version(self) -> str:
        return __version__


# Global env object
env = EnvConfig()


def get_config_summary() -> dict:
    """Get configuration summary"""
    bootkit_vars = {k: v for k, v in os.environ.items() if k.startswith('BOOTKIT_')}

    return {
        'env_file_exists': Path(env.env_file).exists(),
        'overrides_count': len(bootkit_vars),
        'paths': {
            'home_dir': env.home_dir,
            'bin_dir': env.bin_dir,
            'extensions_dir': env.extensions_dir,
            'logs_dir': env.logs_dir
        }
    }
