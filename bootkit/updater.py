"""
Self Updater

Replaces the installed bootkit executable with the matching asset of the
latest GitHub release:
- Releases are read from the GitHub "latest release" API
- The asset for this machine is named bootkit_<os>_<arch>
- The new binary is staged next to the old one and swapped in atomically
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .context import ExecutionContext
from .downloader import Downloader
from .errors import BootkitError, UpdateError, is_cancellation
from .platform_utils import PlatformUtils

logger = logging.getLogger(__name__)

BINARY_NAME = 'bootkit'


def _version_parts(version: str) -> List[int]:
    version = version.strip()
    if version[:1] in ('v', 'V'):
        version = version[1:]
    parts = []
    for part in version.split('.'):
        parts.append(int(part) if part.isdigit() else 0)
    return parts


def compare_versions(a: str, b: str) -> int:
    """
    Compare two dotted version strings

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b
    """
    left, right = _version_parts(a), _version_parts(b)
    length = max(len(left), len(right))
    left += [0] * (length - len(left))
    right += [0] * (length - len(right))
    return (left > right) - (left < right)


@dataclass(frozen=True)
class Asset:
    name: str
    download_url: str


@dataclass(frozen=True)
class Release:
    tag_name: str
    assets: Tuple[Asset, ...] = field(default_factory=tuple)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Release':
        if not isinstance(data, dict) or not isinstance(data.get('tag_name'), str):
            raise UpdateError("release response is missing 'tag_name'")
        assets = tuple(
            Asset(asset['name'], asset['browser_download_url'])
            for asset in data.get('assets') or []
            if isinstance(asset, dict) and 'name' in asset and 'browser_download_url' in asset
        )
        return cls(data['tag_name'], assets)

    def find_asset(self, name: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None


class Updater:
    """Checks the release feed and installs newer bootkit binaries"""

    def __init__(self, install_dir: str, current_version: str, releases_url: str,
                 downloader: Optional[Downloader] = None):
        self.install_dir = Path(install_dir)
        self.current_version = current_version
        self.releases_url = releases_url
        self.downloader = downloader or Downloader()

    @property
    def install_path(self) -> Path:
        return self.install_dir / BINARY_NAME

    def get_latest_release(self, context: ExecutionContext) -> Release:
        try:
            data = self.downloader.fetch_json(self.releases_url, context)
        except BootkitError as e:
            if is_cancellation(e):
                raise
            raise UpdateError(f"failed to get latest release: {e}") from e
        return Release.from_json(data)

    def check_for_updates(self, context: ExecutionContext) -> Tuple[bool, str]:
        """
        Returns:
            Tuple of (has_update, latest tag)
        """
        release = self.get_latest_release(context)
        has_update = compare_versions(self.current_version, release.tag_name) < 0
        return has_update, release.tag_name

    def asset_name(self) -> str:
        return f"{BINARY_NAME}_{PlatformUtils.get_os_type()}_{PlatformUtils.get_arch()}"

    def update(self, context: ExecutionContext) -> Optional[str]:
        """
        Install the latest release if it is newer than the running version

        Returns:
            The installed tag, or None when already up to date
        """
        release = self.get_latest_release(context)
        if compare_versions(self.current_version, release.tag_name) >= 0:
            logger.info("✅ You're already using the latest version of bootkit.")
            return None

        asset = release.find_asset(self.asset_name())
        if asset is None:
            raise UpdateError(f"no suitable release found for {self.asset_name()}")

        self.ensure_install_directory()
        fd, tmp_name = tempfile.mkstemp(prefix=f".{BINARY_NAME}-update-", dir=str(self.install_dir))
        os.close(fd)
        try:
            logger.info(f"⬇️  Downloading {release.tag_name} ({asset.name})...")
            self.downloader.fetch_to_file(asset.download_url, tmp_name, context)
            os.chmod(tmp_name, 0o755)
            os.replace(tmp_name, self.install_path)
        except BootkitError as e:
            if is_cancellation(e):
                raise
            raise UpdateError(f"failed to download update: {e}") from e
        except OSError as e:
            raise UpdateError(f"failed to replace old binary: {e}") from e
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info(f"🎉 bootkit has been updated successfully to version {release.tag_name}!")
        return release.tag_name

    def ensure_install_directory(self) -> Path:
        try:
            self.install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise UpdateError(f"failed to create install directory: {e}") from e
        return self.install_dir

    def ensure_path_in_rc(self, rc_file: Optional[str] = None) -> bool:
        """Make sure the install directory is on PATH in the shell RC file"""
        try:
            added = PlatformUtils.add_to_path(str(self.install_dir), rc_file)
        except OSError as e:
            raise UpdateError(f"failed to update shell RC file: {e}") from e
        if added:
            logger.info(f"📝 Added {self.install_dir} to your PATH. "
                        f"Restart your terminal or source your shell RC file to apply the changes.")
        return added
