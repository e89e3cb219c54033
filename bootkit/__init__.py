"""
Bootkit Core Modules

This package contains the functionality of bootkit, a personal machine
bootstrapping tool, including:
- Installation and configuration orchestration
- Command execution and HTTP downloads
- Extension management and self-update
- CLI interface, configuration and logging
"""

__version__ = "0.1.0"
__all__ = [
    'ToolInstaller',
    'ToolConfigurator',
    'StatsRecorder',
    'SubprocessRunner',
    'ExecutionContext',
    'load_tools_config',
]

from .context import ExecutionContext
from .executor import SubprocessRunner
from .stats import StatsRecorder
from .installer import ToolInstaller
from .configurator import ToolConfigurator
from .config_loader import load_tools_config
