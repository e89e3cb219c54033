"""
Configuration Loader

Parses the declarative YAML document listing the tools to install and
the configuration files to apply:

    tools:
      - name: wget
      - name: iterm2
        method: cask
      - name: curl
        install_command: brew install curl
        post_install:
          - echo done
    configure:
      - name: zsh
        config_url: https://github.com/user/dotfiles/blob/main/.zshrc
        install_path: ~/.zshrc

Every problem with the document is reported as a ConfigurationError before
any work starts.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import ConfigurationError
from .models import (
    ConfigureItem,
    CustomCommand,
    InstallMethod,
    PackageInstall,
    SourceURL,
    ToolConfig,
    ToolItem,
)

logger = logging.getLogger(__name__)

METHOD_ALIASES = {
    '': InstallMethod.DEFAULT,
    'brew': InstallMethod.DEFAULT,
    'formula': InstallMethod.DEFAULT,
    'default': InstallMethod.DEFAULT,
    'cask': InstallMethod.CASK,
}


def _load_yaml_file(file_path: Path) -> Any:
    """Load and parse a YAML file"""
    if not file_path.exists():
        raise ConfigurationError(f"Config file does not exist at path: {file_path}")
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Config file {file_path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {e}") from e


def _optional_str(entry: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = entry.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{where}: '{key}' must be a string")
    value = value.strip()
    return value or None


def _require_name(entry: Any, where: str) -> str:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(entry).__name__}")
    name = entry.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"{where}: 'name' is required")
    return name.strip()


def _parse_method(value: Optional[str], where: str) -> InstallMethod:
    key = (value or '').lower()
    if key not in METHOD_ALIASES:
        raise ConfigurationError(f"{where}: unknown install method '{value}'")
    return METHOD_ALIASES[key]


def parse_tool(entry: Any, index: int) -> ToolItem:
    where = f"tools[{index}]"
    name = _require_name(entry, where)
    where = f"tools[{index}] ({name})"

    install_command = _optional_str(entry, 'install_command', where)
    method = _optional_str(entry, 'method', where)

    post_install = entry.get('post_install') or []
    if isinstance(post_install, str):
        post_install = [post_install]
    if not isinstance(post_install, list) or not all(isinstance(c, str) for c in post_install):
        raise ConfigurationError(f"{where}: 'post_install' must be a list of commands")
    post_actions = tuple(c for c in post_install if c.strip())

    if install_command:
        if method:
            logger.warning(f"⚠️  {name}: install_command is set, ignoring method '{method}'")
        return ToolItem(name, CustomCommand(install_command), post_actions)

    return ToolItem(name, PackageInstall(_parse_method(method, where)), post_actions)


def parse_configure_item(entry: Any, index: int) -> ConfigureItem:
    where = f"configure[{index}]"
    name = _require_name(entry, where)
    where = f"configure[{index}] ({name})"

    install_path = _optional_str(entry, 'install_path', where)
    if not install_path:
        raise ConfigurationError(f"{where}: 'install_path' is required")

    configure_command = _optional_str(entry, 'configure_command', where)
    config_url = _optional_str(entry, 'config_url', where)

    source: Union[CustomCommand, SourceURL]
    if configure_command:
        source = CustomCommand(configure_command)
    elif config_url:
        source = SourceURL(config_url)
    else:
        raise ConfigurationError(f"{where}: either 'config_url' or 'configure_command' is required")

    return ConfigureItem(name, source, install_path)


def _list_section(document: Dict[str, Any], key: str) -> List[Any]:
    section = document.get(key)
    if section is None:
        return []
    if not isinstance(section, list):
        raise ConfigurationError(f"'{key}' must be a list")
    return section


def parse_tools_config(document: Any) -> ToolConfig:
    """Build a ToolConfig from an already parsed YAML document"""
    if document is None:
        return ToolConfig()
    if not isinstance(document, dict):
        raise ConfigurationError("config document must be a mapping with 'tools' and 'configure' lists")

    tools = [parse_tool(entry, i) for i, entry in enumerate(_list_section(document, 'tools'))]
    configure = [parse_configure_item(entry, i)
                 for i, entry in enumerate(_list_section(document, 'configure'))]
    return ToolConfig(tools=tools, configure=configure)


def load_tools_config(filename: Union[str, Path]) -> ToolConfig:
    """
    Load tool configuration from a YAML file

    Args:
        filename: Path to the configuration file

    Returns:
        Parsed ToolConfig

    Raises:
        ConfigurationError: the file is missing, unreadable or malformed
    """
    file_path = Path(filename)
    config = parse_tools_config(_load_yaml_file(file_path))
    logger.debug(f"📋 Loaded {len(config.tools)} tools and {len(config.configure)} "
                 f"configure items from {file_path}")
    return config
