"""
Platform Utilities Module

Provides platform checks and bootstrap helpers including:
- OS detection and system information
- Homebrew and Xcode command line tools detection
- Bootstrap install items for Xcode and Homebrew
- Persistent PATH updates in shell RC files
"""

import getpass
import os
import platform
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import distro

from .models import CustomCommand, ToolItem

HOMEBREW_INSTALL_SCRIPT = 'https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh'
HOMEBREW_PREFIXES = ['/opt/homebrew', '/usr/local']  # Apple Silicon first, then Intel


class PlatformUtils:
    """Platform-specific utility functions"""

    @classmethod
    def get_platform_info(cls) -> str:
        """Get detailed platform information"""
        system = platform.system()
        machine = platform.machine()

        if system == 'Darwin':
            version = platform.mac_ver()[0]
            return f"macOS {version} ({machine})"
        elif system == 'Linux':
            return f"{distro.name()} {distro.version()} ({machine})".strip()
        return f"{system} ({machine})"

    @classmethod
    def get_os_type(cls) -> str:
        """Get normalized OS type"""
        return platform.system().lower()

    @classmethod
    def get_arch(cls) -> str:
        """Get normalized CPU architecture (amd64, arm64, ...)"""
        machine = platform.machine().lower()
        return {'x86_64': 'amd64', 'aarch64': 'arm64'}.get(machine, machine)

    @classmethod
    def command_exists(cls, command: str) -> bool:
        """Check if a command exists in system PATH"""
        return shutil.which(command) is not None

    @classmethod
    def run_command(cls, command: List[str], timeout: int = 30) -> Tuple[bool, str, str]:
        """
        Run a short system query command with captured output

        Returns:
            Tuple of (success, stdout, stderr)
        """
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False
            )
            return result.returncode == 0, result.stdout, result.stderr
        except subprocess.TimeoutExpired:
            return False, "", f"Command timed out after {timeout} seconds"
        except OSError as e:
            return False, "", str(e)

    @classmethod
    def get_current_user(cls) -> str:
        return getpass.getuser()

    @classmethod
    def is_admin(cls, username: Optional[str] = None) -> bool:
        """Check whether the user belongs to the admin group"""
        username = username or cls.get_current_user()
        success, stdout, _ = cls.run_command(['groups', username], timeout=10)
        if not success:
            return False
        return 'admin' in stdout.split()

    @classmethod
    def is_homebrew_installed(cls) -> bool:
        success, stdout, _ = cls.run_command(['which', 'brew'], timeout=10)
        return success and '/brew' in stdout

    @classmethod
    def is_xcode_installed(cls) -> bool:
        success, stdout, _ = cls.run_command(['xcode-select', '-p'], timeout=10)
        if not success:
            return False
        return '/Applications/Xcode.app' in stdout or 'CommandLineTools' in stdout

    @classmethod
    def homebrew_prefix(cls) -> str:
        """Directory Homebrew installs into on this machine"""
        for prefix in HOMEBREW_PREFIXES:
            if Path(prefix, 'bin', 'brew').exists():
                return prefix
        return HOMEBREW_PREFIXES[0] if cls.get_arch() == 'arm64' else HOMEBREW_PREFIXES[1]

    @classmethod
    def get_system_info(cls) -> Dict[str, str]:
        """Get system information shown in the status banner"""
        return {
            'platform': cls.get_platform_info(),
            'os_type': cls.get_os_type(),
            'arch': cls.get_arch(),
            'user': cls.get_current_user(),
            'python_version': f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        }

    @classmethod
    def get_shell_rc_files(cls) -> List[str]:
        """Get list of existing shell RC files that might need PATH updates"""
        home = Path(os.environ.get('HOME') or Path.home())
        candidates = ['.zshrc', '.bashrc', '.bash_profile', '.profile', '.zprofile']
        return [str(home / c) for c in candidates if (home / c).exists()]

    @classmethod
    def default_rc_file(cls) -> str:
        rc_files = cls.get_shell_rc_files()
        if rc_files:
            return rc_files[0]
        home = Path(os.environ.get('HOME') or Path.home())
        return str(home / '.zshrc')

    @classmethod
    def path_export_line(cls, directory: str) -> str:
        return f'export PATH="{directory}:$PATH"'

    @classmethod
    def add_to_path(cls, directory: str, rc_file: Optional[str] = None) -> bool:
        """
        Add directory to PATH for this process and persist it in a shell RC file

        Returns:
            True if the RC file was changed, False if it already had the entry
        """
        current_path = os.environ.get('PATH', '')
        if directory not in current_path.split(os.pathsep):
            os.environ['PATH'] = f"{directory}{os.pathsep}{current_path}"

        rc_path = Path(rc_file or cls.default_rc_file())
        export_line = cls.path_export_line(directory)

        content = rc_path.read_text(encoding='utf-8') if rc_path.exists() else ''
        if export_line in content:
            return False

        with open(rc_path, 'a', encoding='utf-8') as f:
            f.write(f'\n# Added by bootkit\n{export_line}\n')
        return True


def xcode_tool_item() -> ToolItem:
    """Install item for the Xcode command line tools"""
    return ToolItem('xcode', CustomCommand('xcode-select --install'))


def homebrew_tool_item(rc_file: Optional[str] = None) -> ToolItem:
    """Install item for Homebrew; the post action puts brew on PATH"""
    install = f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_SCRIPT})"'

    bin_dir = f"{PlatformUtils.homebrew_prefix()}/bin"
    rc_path = shlex.quote(rc_file or PlatformUtils.default_rc_file())
    export_line = shlex.quote(PlatformUtils.path_export_line(bin_dir))
    update_path = f"grep -qxF {export_line} {rc_path} 2>/dev/null || echo {export_line} >> {rc_path}"

    return ToolItem('homebrew', CustomCommand(install), (update_path,))
