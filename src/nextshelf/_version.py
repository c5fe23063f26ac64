"""Version lookup for NextShelf.

An installed distribution reports its own version. A source checkout
falls back to MAJOR.MINOR.PATCH where PATCH is the git commit count.
"""

from __future__ import annotations

import subprocess
from importlib.metadata import PackageNotFoundError, version

# Base version for source checkouts - bump this manually for releases
BASE_VERSION = "0.1"


def _get_commit_count() -> int | None:
    """Get the number of commits in the enclosing git repository.

    Returns:
        Commit count, or None if git is unavailable or not in a repo.
    """
    try:
        result = subprocess.run(
            ["git", "rev-list", "--count", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            return int(result.stdout.strip())
    except (subprocess.SubprocessError, FileNotFoundError, ValueError, OSError):
        pass
    return None


def get_version() -> str:
    """Get the full version string."""
    try:
        return version("nextshelf")
    except PackageNotFoundError:
        pass

    commit_count = _get_commit_count()
    if commit_count is not None:
        return f"{BASE_VERSION}.{commit_count}"
    return f"{BASE_VERSION}.0"


__version__ = get_version()
