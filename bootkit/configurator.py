"""
Configuration Orchestrator

Puts configuration files in place, one item at a time:
- Existing targets are only replaced when force is set
- Content comes from a configure command or an HTTP download
- The first failing item aborts the batch
"""

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from .context import ExecutionContext
from .downloader import Downloader
from .errors import (
    BootkitError,
    ConfigureError,
    DirectoryCreationError,
    MissingOutputError,
    TargetExistsError,
)
from .executor import ProcessRunner, split_command
from .models import ConfigureItem, CustomCommand, SourceURL
from .stats import BatchResult, Operation, StatsRecorder
from .urls import expand_tilde

logger = logging.getLogger(__name__)


class ToolConfigurator:
    """Runs configure batches and records one Stat per item"""

    def __init__(self, runner: ProcessRunner, downloader: Optional[Downloader] = None,
                 force: bool = False, home: Optional[str] = None):
        """
        Args:
            runner: Executes configure commands
            downloader: Fetches config_url sources
            force: Overwrite files that already exist
            home: Directory that ~ expands to, defaults to $HOME
        """
        self.runner = runner
        self.downloader = downloader or Downloader()
        self.force = force
        self.home = home

    def configure(self, items: Sequence[ConfigureItem], context: ExecutionContext) -> BatchResult:
        """
        Apply configuration items in order, stopping at the first failure

        Returns:
            BatchResult with one Stat per attempted item
        """
        recorder = StatsRecorder()

        for item in items:
            logger.info(f"⚙️  Configuring {item.name}...")
            try:
                with recorder.track(item.name, Operation.CONFIGURE):
                    self.configure_item(item, context)
            except BootkitError as e:
                logger.error(f"❌ Failed to configure {item.name}: {e}")
                return recorder.result(e)

        logger.info("✅ All requested tools have been configured successfully.")
        return recorder.result()

    def resolve_target(self, item: ConfigureItem) -> str:
        return expand_tilde(item.target_path, self.home)

    def configure_item(self, item: ConfigureItem, context: ExecutionContext) -> str:
        """
        Put one configuration file in place

        Returns:
            The resolved target path
        """
        target = self.resolve_target(item)

        if os.path.exists(target) and not self.force:
            raise TargetExistsError(target)

        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(f"failed to create directory: {e}") from e

        source = item.source
        if isinstance(source, CustomCommand):
            self._run_configure_command(source.command, target, context)
        elif isinstance(source, SourceURL):
            self.downloader.fetch_to_file(source.url, target, context)
        else:
            raise TypeError(f"unsupported configure source: {source!r}")

        logger.debug(f"📝 {item.name} written to {target}")
        return target

    def _run_configure_command(self, command: str, target: str, context: ExecutionContext) -> None:
        try:
            argv = split_command(command)
        except ValueError as e:
            raise ConfigureError(f"invalid configure command '{command}': {e}") from e
        self.runner.run(argv, context)
        if not os.path.exists(target):
            raise MissingOutputError(target)
