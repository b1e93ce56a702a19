"""Data models for branch-config."""

import logging
import sys
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "config.yaml"


def default_base_dir() -> Path | None:
    """Return the platform per-user configuration directory.

    Returns:
        Directory path, or None if the platform cannot determine one
    """
    try:
        return Path(user_config_dir())
    except (KeyError, OSError, RuntimeError) as e:
        logger.warning(f"Could not determine user configuration directory: {e}")
        return None


def executable_name() -> str:
    """Name of the running program without directory or suffix."""
    return Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else ""


class OutputFormat(Enum):
    """Text format used to render query matches."""

    JSON = "json"
    YAML = "yaml"


@dataclass(frozen=True)
class ConfigHandle:
    """Identifies one configuration store.

    The file lives at ``base_dir / id / file_name``. ``id`` is used as a
    single path segment and must not contain traversal sequences such as
    ``..``; this is not checked.

    Attributes:
        id: Application or command-tree name
        base_dir: Parent directory of all stores (None when unresolvable)
        file_name: Name of the configuration file inside the store directory
    """

    id: str
    base_dir: Path | None = field(default_factory=default_base_dir)
    file_name: str = DEFAULT_FILE_NAME

    def __post_init__(self):
        if self.base_dir is not None and not isinstance(self.base_dir, Path):
            object.__setattr__(self, "base_dir", Path(self.base_dir))

    @classmethod
    def for_executable(cls, base_dir: Path | str | None = None) -> "ConfigHandle":
        """Create a handle named after the running program.

        Args:
            base_dir: Override for the platform configuration directory

        Returns:
            Handle whose id is the executable's file name without suffix
        """
        if base_dir is None:
            return cls(id=executable_name())
        return cls(id=executable_name(), base_dir=Path(base_dir))
