"""
Installation Orchestrator

Installs an ordered list of tools, one at a time:
- Custom install commands run through the shell
- Everything else goes through the package manager (brew install by default)
- The first failing install aborts the batch
- Post-install commands are best-effort
"""

import logging
from typing import List, Optional, Sequence

from .context import ExecutionContext
from .env import env
from .errors import BootkitError, is_cancellation
from .executor import ProcessRunner, describe, shell_command, split_command
from .models import CustomCommand, InstallMethod, PackageInstall, ToolItem
from .stats import BatchResult, Operation, StatsRecorder

logger = logging.getLogger(__name__)

CASK_FLAG = '--cask'
FORCE_FLAG = '--force'


class ToolInstaller:
    """Runs install batches and records one Stat per tool"""

    def __init__(self, runner: ProcessRunner, force: bool = False,
                 package_manager: Optional[Sequence[str]] = None):
        """
        Args:
            runner: Executes the install and post-install commands
            force: Pass the force flag to the package manager
            package_manager: Base install command, defaults to BOOTKIT_PACKAGE_MANAGER
        """
        self.runner = runner
        self.force = force
        if package_manager is None:
            package_manager = split_command(env.package_manager)
        self.package_manager = list(package_manager)

    def build_install_command(self, tool: ToolItem) -> List[str]:
        """Command line that realizes the tool's install step"""
        source = tool.source
        if isinstance(source, CustomCommand):
            return shell_command(source.command)
        if isinstance(source, PackageInstall):
            argv = list(self.package_manager)
            if source.method is InstallMethod.CASK:
                argv.append(CASK_FLAG)
            if self.force:
                argv.append(FORCE_FLAG)
            argv.append(tool.name)
            return argv
        raise TypeError(f"unsupported tool source: {source!r}")

    def install(self, tools: Sequence[ToolItem], context: ExecutionContext) -> BatchResult:
        """
        Install tools in order, stopping at the first failure

        Returns:
            BatchResult with one Stat per attempted tool; error is the failure
            that aborted the batch, or None when every tool was installed
        """
        recorder = StatsRecorder()

        for tool in tools:
            try:
                with recorder.track(tool.name, Operation.INSTALL):
                    self._install_tool(tool, context)
            except BootkitError as e:
                logger.error(f"❌ Failed to install {tool.name}: {e}")
                return recorder.result(e)

        logger.info("✅ All requested tools and casks have been installed successfully.")
        return recorder.result()

    def _install_tool(self, tool: ToolItem, context: ExecutionContext) -> None:
        logger.info(f"📦 Installing {tool.name}...")

        argv = self.build_install_command(tool)
        if isinstance(tool.source, CustomCommand):
            logger.info(f"Installing {tool.name} using custom command {tool.source.command}...")
        else:
            logger.info(f"Installing {tool.name} using {describe(argv)}...")

        self.runner.run(argv, context)
        self._run_post_actions(tool, context)

    def _run_post_actions(self, tool: ToolItem, context: ExecutionContext) -> None:
        for command in tool.post_actions:
            logger.debug(f"🔧 Running post-install command for {tool.name}: {command}")
            try:
                self.runner.run(shell_command(command), context)
            except BootkitError as e:
                if is_cancellation(e):
                    raise
                logger.warning(f"⚠️  Post-install command for {tool.name} failed: {e}")
