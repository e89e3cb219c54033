"""
CLI Module

Command line interface for bootkit providing:
- Installation of Xcode tools, Homebrew and configured tools
- Configuration file management
- Extension management
- Self update
- System status
"""

import sys
from datetime import datetime
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from . import __version__
from .config_loader import load_tools_config
from .configurator import ToolConfigurator
from .context import ExecutionContext, cancel_on_interrupt
from .env import env, get_config_summary, load_env_file
from .errors import BootkitError, is_cancellation
from .executor import ProcessRunner, SubprocessRunner
from .extensions import ExtensionManager
from .installer import ToolInstaller
from .logger import set_log_level, setup_logging
from .models import ToolItem
from .platform_utils import PlatformUtils, homebrew_tool_item, xcode_tool_item
from .stats import BatchResult, print_stats_table
from .updater import Updater
from .urls import resolve_config_path

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCEL = 2

INSTALL_TARGETS = ['everything', 'xcode', 'homebrew', 'tools']


class PromptCancelled(Exception):
    """User aborted an interactive prompt"""
    pass


class BootkitCLI:
    """Command line interface for bootkit"""

    def __init__(self, runner: Optional[ProcessRunner] = None,
                 console: Optional[Console] = None):
        self.console = console or Console()
        self.runner = runner or SubprocessRunner()
        self.platform_utils = PlatformUtils()

    def _print(self, message: str, style: Optional[str] = None) -> None:
        """Print message with optional styling"""
        if style:
            self.console.print(message, style=style)
        else:
            self.console.print(message)

    def _print_panel(self, content: str, title: str, style: str = "blue") -> None:
        """Print content in a panel"""
        self.console.print(Panel(content, title=title, border_style=style))

    def _input(self, prompt: str, default: Optional[str] = None) -> str:
        """Get user input with optional default"""
        try:
            if default:
                return Prompt.ask(prompt, default=default, console=self.console)
            return Prompt.ask(prompt, console=self.console)
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptCancelled() from e

    def _choose(self, prompt: str, choices: List[str], default: str) -> str:
        try:
            return Prompt.ask(prompt, choices=choices, default=default, console=self.console)
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptCancelled() from e

    def _confirm(self, prompt: str, default: bool = False) -> bool:
        """Get yes/no confirmation from user"""
        try:
            return Confirm.ask(prompt, default=default, console=self.console)
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptCancelled() from e

    def show_welcome(self) -> None:
        welcome = f"[green]Your personal machine bootstrapping tool[/green]\n\n"
        welcome += f"Version: [yellow]{__version__}[/yellow]\n"
        welcome += f"Current time: [yellow]{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}[/yellow]\n\n"
        welcome += "Available commands:\n"
        welcome += "  - install: Install software tools\n"
        welcome += "  - configure: Configure your system\n"
        welcome += "  - extension: Manage extensions\n"
        welcome += "  - update: Update bootkit\n"
        welcome += "  - status: Show system status\n\n"
        welcome += "[yellow]Tip: Use 'bootkit --help' to see all available commands and options.[/yellow]"
        self._print_panel(welcome, "🚀 Welcome to bootkit!", "blue")

    def show_status(self) -> None:
        """Show system status"""
        system_info = self.platform_utils.get_system_info()
        config_summary = get_config_summary()
        paths = config_summary['paths']

        status_info = "bootkit Status Report\n\n"
        status_info += "System Information:\n"
        status_info += f"  Platform: {system_info['platform']}\n"
        status_info += f"  Architecture: {system_info['arch']}\n"
        status_info += f"  User: {system_info['user']}\n"
        status_info += f"  Python: {system_info['python_version']}\n"

        status_info += "\nbootkit Information:\n"
        status_info += f"  Version: {__version__}\n"
        status_info += f"  Home Directory: {paths['home_dir']}\n"
        status_info += f"  Environment File: {'✓' if config_summary['env_file_exists'] else '✗'}\n"
        status_info += f"  Overrides: {config_summary['overrides_count']}\n"
        status_info += f"  Extensions: {len(self.extension_manager().list())}\n"

        self._print_panel(status_info, "System Status", "green")

    def _report(self, result: BatchResult, success_message: str) -> int:
        """Print the stats table and map the batch outcome to an exit code"""
        if result.stats:
            print_stats_table(self.console, result.stats)

        if result.error is None:
            self._print(f"✅ {success_message}", "bold green")
            return EXIT_OK
        if is_cancellation(result.error):
            self._print(f"🛑 Cancelled: {result.error}", "yellow")
            return EXIT_CANCEL
        self._print(f"❌ {result.error}", "bold red")
        return EXIT_ERROR

    def _resolve_options(self, prompt_target: bool, target: Optional[str], config: str,
                         force: bool, non_interactive: bool, force_prompt: str):
        if not non_interactive:
            if prompt_target:
                target = self._choose("What would you like to install?", INSTALL_TARGETS, 'everything')
            if target in (None, 'everything', 'tools'):
                config = self._input("Enter the path to the config file", default=config)
                force = self._confirm(force_prompt, default=force)
        return target or 'everything', resolve_config_path(config), force

    def build_install_plan(self, target: str, config_path: str) -> List[ToolItem]:
        """Ordered install items for an install target"""
        items: List[ToolItem] = []

        if target in ('everything', 'xcode'):
            if self.platform_utils.is_xcode_installed():
                self._print("Xcode Command Line Tools are already installed.", "dim")
            else:
                items.append(xcode_tool_item())

        if target in ('everything', 'homebrew'):
            if self.platform_utils.is_homebrew_installed():
                self._print("Homebrew is already installed.", "dim")
            else:
                user = self.platform_utils.get_current_user()
                if not self.platform_utils.is_admin(user):
                    raise BootkitError(f"user {user} is not an admin, cannot install Homebrew")
                items.append(homebrew_tool_item())

        if target in ('everything', 'tools'):
            items.extend(load_tools_config(config_path).tools)

        return items

    def install(self, target: Optional[str], config: str, force: bool, non_interactive: bool) -> int:
        try:
            target, config_path, force = self._resolve_options(
                target is None, target, config, force, non_interactive,
                "Do you want to force reinstall of casks?")
            items = self.build_install_plan(target, config_path)
        except PromptCancelled:
            self._print("Installation cancelled.", "yellow")
            return EXIT_CANCEL
        except BootkitError as e:
            self._print(f"❌ {e}", "bold red")
            return EXIT_ERROR

        if not items:
            self._print("Nothing to install.", "green")
            return EXIT_OK

        self._print(f"Running installation for {target}...", "bold green")
        installer = ToolInstaller(self.runner, force=force)
        with cancel_on_interrupt(ExecutionContext()) as context:
            result = installer.install(items, context)
        return self._report(result, "All installations completed successfully.")

    def configure(self, config: str, force: bool, non_interactive: bool) -> int:
        try:
            _, config_path, force = self._resolve_options(
                False, None, config, force, non_interactive,
                "Do you want to overwrite existing configuration files?")
            items = load_tools_config(config_path).configure
        except PromptCancelled:
            self._print("Configuration cancelled.", "yellow")
            return EXIT_CANCEL
        except BootkitError as e:
            self._print(f"❌ {e}", "bold red")
            return EXIT_ERROR

        if not items:
            self._print("Nothing to configure.", "green")
            return EXIT_OK

        configurator = ToolConfigurator(self.runner, force=force)
        with cancel_on_interrupt(ExecutionContext()) as context:
            result = configurator.configure(items, context)
        return self._report(result, "All configurations completed successfully.")

    def _run_guarded(self, action) -> int:
        try:
            with cancel_on_interrupt(ExecutionContext()) as context:
                action(context)
        except BootkitError as e:
            if is_cancellation(e):
                self._print(f"🛑 Cancelled: {e}", "yellow")
                return EXIT_CANCEL
            self._print(f"❌ {e}", "bold red")
            return EXIT_ERROR
        return EXIT_OK

    def extension_manager(self) -> ExtensionManager:
        return ExtensionManager(env.extensions_dir, self.runner)

    def list_extensions(self) -> int:
        try:
            extensions = self.extension_manager().list()
        except BootkitError as e:
            self._print(f"❌ {e}", "bold red")
            return EXIT_ERROR
        if not extensions:
            self._print("No extensions installed")
            return EXIT_OK
        for extension in extensions:
            self._print(extension.name)
        return EXIT_OK

    def updater(self) -> Updater:
        return Updater(env.bin_dir, __version__, env.releases_url)

    def check_update(self, context: ExecutionContext) -> None:
        has_update, tag = self.updater().check_for_updates(context)
        if has_update:
            self._print(f"A new version of bootkit is available: {tag} (current {__version__})", "yellow")
            self._print("Run 'bootkit update' to upgrade.", "dim")
        else:
            self._print(f"bootkit {__version__} is up to date.", "green")

    def self_update(self, context: ExecutionContext) -> None:
        updater = self.updater()
        updater.ensure_install_directory()
        updater.ensure_path_in_rc()
        tag = updater.update(context)
        if tag:
            self._print(f"bootkit has been updated successfully to version {tag}!", "bold green")
        else:
            self._print("You're already using the latest version of bootkit.", "green")


def _cli(ctx: click.Context) -> BootkitCLI:
    return ctx.find_object(BootkitCLI)


@click.group(invoke_without_command=True)
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default=None, help='Console log level')
@click.version_option(__version__, '--version', prog_name='bootkit')
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str]):
    """Bootstrap your machine"""
    load_env_file()
    setup_logging()
    if log_level:
        set_log_level(log_level.upper(), 'console')

    if not isinstance(ctx.obj, BootkitCLI):
        ctx.obj = BootkitCLI()

    if ctx.invoked_subcommand is None:
        ctx.obj.show_welcome()


@main.command()
@click.argument('target', required=False, type=click.Choice(INSTALL_TARGETS))
@click.option('-c', '--config', default=lambda: env.default_config, show_default='config.yaml',
              help='Path to the configuration file')
@click.option('-f', '--force', is_flag=True, help='Force reinstallation of already installed tools')
@click.option('--non-interactive', is_flag=True, help='Run in non-interactive mode')
@click.pass_context
def install(ctx: click.Context, target: Optional[str], config: str, force: bool, non_interactive: bool):
    """Install software"""
    if non_interactive and target is None:
        target = 'everything'
    ctx.exit(_cli(ctx).install(target, config, force, non_interactive))


@main.command()
@click.option('-c', '--config', default=lambda: env.default_config, show_default='config.yaml',
              help='Path to the configuration file')
@click.option('-f', '--force', is_flag=True, help='Overwrite existing configuration files')
@click.option('--non-interactive', is_flag=True, help='Run in non-interactive mode')
@click.pass_context
def configure(ctx: click.Context, config: str, force: bool, non_interactive: bool):
    """Configure tools"""
    ctx.exit(_cli(ctx).configure(config, force, non_interactive))


@main.group()
def extension():
    """Manage bootkit extensions"""
    pass


@extension.command('install')
@click.argument('repository')
@click.pass_context
def extension_install(ctx: click.Context, repository: str):
    """Install an extension from a git repository"""
    cli = _cli(ctx)
    ctx.exit(cli._run_guarded(lambda context: cli.extension_manager().install(repository, context)))


@extension.command('list')
@click.pass_context
def extension_list(ctx: click.Context):
    """List installed extensions"""
    ctx.exit(_cli(ctx).list_extensions())


@extension.command('remove')
@click.argument('name')
@click.pass_context
def extension_remove(ctx: click.Context, name: str):
    """Remove an extension"""
    cli = _cli(ctx)
    ctx.exit(cli._run_guarded(lambda context: cli.extension_manager().remove(name)))


@extension.command('update')
@click.argument('name')
@click.pass_context
def extension_update(ctx: click.Context, name: str):
    """Update an extension with git pull"""
    cli = _cli(ctx)
    ctx.exit(cli._run_guarded(lambda context: cli.extension_manager().update(name, context)))


@extension.command('exec', context_settings={'ignore_unknown_options': True})
@click.argument('name')
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def extension_exec(ctx: click.Context, name: str, args):
    """Run an installed extension"""
    cli = _cli(ctx)
    ctx.exit(cli._run_guarded(lambda context: cli.extension_manager().execute(name, list(args), context)))


@main.command()
@click.option('--check', is_flag=True, help='Only check whether a newer version exists')
@click.pass_context
def update(ctx: click.Context, check: bool):
    """Update bootkit to the latest version"""
    cli = _cli(ctx)
    ctx.exit(cli._run_guarded(cli.check_update if check else cli.self_update))


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show system status"""
    cli = _cli(ctx)
    try:
        cli.show_status()
    except BootkitError as e:
        cli._print(f"❌ {e}", "bold red")
        ctx.exit(EXIT_ERROR)


if __name__ == '__main__':
    sys.exit(main())
