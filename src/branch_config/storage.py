"""Locked persistence of the configuration file.

Writes are serialized across processes with an advisory lock file next to
the configuration file and land through a rename, so a reader sees either
the old or the new document in full. Reads take no lock. ``initialize``
takes no lock either and must not run concurrently with anything else on
the same store.
"""

import contextlib
import dataclasses
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import yaml
from filelock import FileLock

from .exceptions import ConfigFileError
from .exceptions import ConfigResolutionError
from .exceptions import ConfigSerializationError
from .models import ConfigHandle
from .paths import FILE_MODE
from .paths import directory_path
from .paths import ensure_directory
from .paths import file_path

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"


def initialize(handle: ConfigHandle) -> None:
    """Reset the store to an empty configuration file.

    Any existing store directory is removed with everything in it, then the
    directory and an empty file are created with owner-only permissions.
    Callers that want a confirmation step must ask before calling this.

    Args:
        handle: Store to reset

    Raises:
        ConfigResolutionError: If the store directory cannot be resolved
        ConfigFileError: If removing or creating files fails
    """
    directory = directory_path(handle)
    if directory is None:
        raise ConfigResolutionError(f"could not resolve config path for {handle.id!r}")

    target = directory / handle.file_name
    try:
        if directory.exists():
            shutil.rmtree(directory)
        ensure_directory(directory)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        os.close(fd)
        os.chmod(target, FILE_MODE)
    except OSError as e:
        raise ConfigFileError(f"Failed to initialize configuration at {directory}: {e}") from e

    logger.info(f"Initialized configuration for {handle.id!r} at {target}")


def read_raw(handle: ConfigHandle) -> str:
    """Read the configuration file as text.

    A missing file means nothing has been configured yet. Other failures
    are logged and also reported as empty content.

    Args:
        handle: Store to read

    Returns:
        File content, or an empty string
    """
    path = file_path(handle)
    if path is None:
        logger.warning(f"Could not resolve config path for {handle.id!r}")
        return ""

    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read configuration from {path}: {e}")
        return ""


def serialize(value: Any) -> str:
    """Encode a value as a YAML document.

    Dataclass instances are written as mappings of their fields.

    Args:
        value: Mapping, sequence, scalar or dataclass instance

    Returns:
        YAML text

    Raises:
        ConfigSerializationError: If the value cannot be represented
    """
    try:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=False, allow_unicode=True)
    except (yaml.YAMLError, TypeError) as e:
        raise ConfigSerializationError(f"Cannot encode {type(value).__name__} as YAML: {e}") from e


def overwrite(handle: ConfigHandle, value: Any) -> None:
    """Replace the whole configuration document.

    The directory is created if missing but existing content is kept.
    Concurrent writers, in this or any other process, wait for each other.

    Args:
        handle: Store to write
        value: New document

    Raises:
        ConfigSerializationError: If the value cannot be encoded
        ConfigResolutionError: If the file path cannot be resolved
        ConfigFileError: If creating the directory or writing fails
    """
    text = serialize(value)

    target = file_path(handle)
    if target is None:
        raise ConfigResolutionError(f"failed to find config for {handle.id!r}")

    try:
        ensure_directory(target.parent)
        lock = FileLock(str(target) + LOCK_SUFFIX, mode=FILE_MODE)
        with lock:
            logger.debug(f"Acquired write lock for {target}")
            _replace(target, text)
    except OSError as e:
        raise ConfigFileError(f"Failed to write configuration to {target}: {e}") from e

    logger.info(f"Wrote configuration for {handle.id!r} to {target}")


def _replace(target: Path, text: str) -> None:
    """Write text to a sibling temporary file and rename it over target."""
    fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, FILE_MODE)
        os.replace(tmp, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise
