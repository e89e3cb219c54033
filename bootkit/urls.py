"""
URL and Path Helpers

- Rewrite GitHub "blob" URLs into raw content URLs
- Expand a leading ~ in target paths
- Resolve user supplied config file paths
"""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .errors import InvalidURLError

RAW_GITHUB_HOST = 'raw.githubusercontent.com'


def convert_to_raw_github_url(url: str) -> str:
    """
    Convert a github.com browse URL to its raw content URL

    https://github.com/<user>/<repo>/blob/<branch>/<path> becomes
    https://raw.githubusercontent.com/<user>/<repo>/<branch>/<path>.
    URLs on other hosts are returned unchanged.

    Raises:
        InvalidURLError: the URL cannot be parsed or the GitHub path is too short
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidURLError(f"invalid URL: {e}") from e

    if parsed.netloc != 'github.com':
        return url

    parts = parsed.path.split('/')
    if len(parts) < 5:
        raise InvalidURLError("invalid GitHub URL format")

    user, repo, branch = parts[1], parts[2], parts[4]
    file_path = '/'.join(parts[5:])
    return f"https://{RAW_GITHUB_HOST}/{user}/{repo}/{branch}/{file_path}"


def _home_directory() -> str:
    # HOME wins so tests and sudo environments can redirect it
    home = os.environ.get('HOME')
    if home:
        return home
    return str(Path.home())


def expand_tilde(path: str, home: Optional[str] = None) -> str:
    """
    Expand ~ and ~/... to the home directory

    ~user/... forms are returned unchanged.
    """
    if not path or path[0] != '~':
        return path
    if len(path) > 1 and path[1] != '/':
        return path

    home = home or _home_directory()
    rest = path[1:].lstrip('/')
    if not rest:
        return home
    return os.path.join(home, rest)


def resolve_config_path(path: str) -> str:
    """Expand environment variables and ~, then make the path absolute"""
    expanded = expand_tilde(os.path.expandvars(path))
    return os.path.abspath(expanded)
