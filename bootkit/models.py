"""
Work Item Models

A batch is an ordered list of work items. Each item carries exactly one
source that determines how it is realized:

- ToolItem: CustomCommand or PackageInstall
- ConfigureItem: CustomCommand or SourceURL
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union

from .errors import ConfigurationError


class InstallMethod(Enum):
    """Package manager installation method"""
    DEFAULT = 'default'
    CASK = 'cask'


@dataclass(frozen=True)
class CustomCommand:
    """User supplied command line"""
    command: str


@dataclass(frozen=True)
class PackageInstall:
    """Install through the package manager"""
    method: InstallMethod = InstallMethod.DEFAULT


@dataclass(frozen=True)
class SourceURL:
    """Remote location of a configuration file"""
    url: str


ToolSource = Union[CustomCommand, PackageInstall]
ConfigureSource = Union[CustomCommand, SourceURL]


@dataclass(frozen=True)
class ToolItem:
    """A tool to install"""
    name: str
    source: ToolSource = PackageInstall()
    post_actions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConfigureItem:
    """A configuration file to put in place"""
    name: str
    source: ConfigureSource
    target_path: str


WorkItem = Union[ToolItem, ConfigureItem]


@dataclass
class ToolConfig:
    """Parsed declarative configuration document"""
    tools: List[ToolItem] = field(default_factory=list)
    configure: List[ConfigureItem] = field(default_factory=list)

    def get_configure_item(self, name: str) -> ConfigureItem:
        """Retrieve a configuration item by name"""
        for item in self.configure:
            if item.name == name:
                return item
        raise ConfigurationError(f"configuration for {name} not found")
