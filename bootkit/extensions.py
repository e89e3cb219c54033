"""
Extension Manager

Extensions are git repositories cloned into <bootkit home>/extensions,
one directory per extension named bootkit-<name>. An extension is run
through its bootkit-<name> executable.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .context import ExecutionContext
from .env import env
from .errors import CommandFailedError, ExtensionError
from .executor import ProcessRunner, SubprocessRunner

logger = logging.getLogger(__name__)

EXTENSION_PREFIX = 'bootkit-'


@dataclass(frozen=True)
class Extension:
    name: str
    path: str


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def extension_name_from_repo(repo: str) -> str:
    """Derive the extension name from a repository URL or path"""
    name = os.path.basename(repo.rstrip('/'))
    if name.endswith('.git'):
        name = name[:-4]
    if name.startswith(EXTENSION_PREFIX):
        name = name[len(EXTENSION_PREFIX):]
    return name


class ExtensionManager:
    """Installs, lists, updates and runs bootkit extensions"""

    def __init__(self, extensions_dir: Optional[str] = None,
                 runner: Optional[ProcessRunner] = None):
        self.extensions_dir = Path(extensions_dir or env.extensions_dir)
        self.runner = runner or SubprocessRunner()

    def extension_path(self, name: str) -> Path:
        if not name or os.sep in name or name in ('.', '..'):
            raise ExtensionError(f"invalid extension name '{name}'")
        return self.extensions_dir / f"{EXTENSION_PREFIX}{name}"

    def install(self, repo: str, context: ExecutionContext) -> Extension:
        """Clone an extension repository"""
        name = extension_name_from_repo(repo)
        path = self.extension_path(name)
        if path.exists():
            raise ExtensionError(f"extension '{name}' is already installed at {path}")

        try:
            self.extensions_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExtensionError(f"failed to create extensions directory: {e}") from e

        logger.info(f"📥 Installing extension {name} from {repo}")
        try:
            self.runner.run(['git', 'clone', repo, str(path)], context)
        except CommandFailedError as e:
            raise ExtensionError(f"failed to clone extension repository: {e}") from e

        logger.info(f"✅ Successfully installed extension '{name}'")
        return Extension(name, str(path))

    def list(self) -> List[Extension]:
        """Installed extensions sorted by name"""
        if not self.extensions_dir.exists():
            return []
        try:
            entries = sorted(self.extensions_dir.iterdir())
        except OSError as e:
            raise ExtensionError(f"failed to read extensions directory: {e}") from e

        return [
            Extension(entry.name[len(EXTENSION_PREFIX):], str(entry))
            for entry in entries
            if entry.is_dir() and entry.name.startswith(EXTENSION_PREFIX)
        ]

    def remove(self, name: str) -> None:
        path = self.extension_path(name)
        if not path.exists():
            raise ExtensionError(f"extension '{name}' is not installed")
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise ExtensionError(f"failed to remove extension: {e}") from e
        logger.info(f"🗑️  Successfully removed extension '{name}'")

    def update(self, name: str, context: ExecutionContext) -> None:
        path = self.extension_path(name)
        if not path.exists():
            raise ExtensionError(f"extension '{name}' is not installed")
        try:
            self.runner.run(['git', '-C', str(path), 'pull'], context)
        except CommandFailedError as e:
            raise ExtensionError(f"failed to update extension: {e}") from e
        logger.info(f"✅ Successfully updated extension '{name}'")

    def find(self, name: str) -> Extension:
        """
        Locate the executable of an extension

        The executable is either the extension path itself or a
        bootkit-<name> file inside the extension directory.
        """
        path = self.extension_path(name)
        for candidate in (path, path / f"{EXTENSION_PREFIX}{name}"):
            if is_executable(candidate):
                return Extension(name, str(candidate))
        raise ExtensionError(f"extension '{name}' not found or not executable")

    def execute(self, name: str, args: Sequence[str], context: ExecutionContext) -> None:
        extension = self.find(name)
        logger.debug(f"🚀 Running extension {name}: {extension.path}")
        self.runner.run([extension.path, *args], context)
