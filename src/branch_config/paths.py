"""Location of configuration stores on disk.

Only path arithmetic happens here; nothing checks whether the paths exist.
``None`` is the "unresolved" result and callers must test for it.
"""

import logging
import os
from pathlib import Path

from .models import ConfigHandle

logger = logging.getLogger(__name__)

# Configuration files may hold tokens, so both are owner-only.
DIR_MODE = 0o700
FILE_MODE = 0o600


def directory_path(handle: ConfigHandle) -> Path | None:
    """Get the directory holding the handle's configuration file.

    Args:
        handle: Store identity

    Returns:
        ``base_dir / id``, or None when there is no base directory or
        both the base directory and id are empty
    """
    if handle.base_dir is None:
        return None
    # Path("") is Path("."); with no id this would resolve to the working directory
    if not handle.id and handle.base_dir == Path(""):
        return None
    return handle.base_dir / handle.id


def file_path(handle: ConfigHandle) -> Path | None:
    """Get the full path of the handle's configuration file.

    Args:
        handle: Store identity

    Returns:
        ``directory_path(handle) / file_name``, or None if unresolved
    """
    directory = directory_path(handle)
    if directory is None:
        return None
    return directory / handle.file_name


def ensure_directory(path: Path) -> None:
    """Create directory with owner-only permissions if missing.

    Existing directories and their content are left untouched.

    Args:
        path: Directory to create
    """
    if path.is_dir():
        return
    path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    # mkdir mode is filtered through the umask
    os.chmod(path, DIR_MODE)
    logger.debug(f"Created configuration directory {path}")
