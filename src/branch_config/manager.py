"""Configuration store bound to one application or command tree."""

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any
from typing import TextIO

from . import query as _query
from . import storage
from .editor import edit_file
from .exceptions import ConfigFileError
from .exceptions import ConfigResolutionError
from .models import ConfigHandle
from .models import OutputFormat
from .paths import directory_path
from .paths import ensure_directory
from .paths import file_path

logger = logging.getLogger(__name__)


class ConfigStore:
    """Reads, writes and queries one configuration file.

    Individual keys are never set programmatically. The document is either
    replaced whole with ``overwrite`` or edited by the user with ``edit``.
    Every call goes back to disk; nothing is cached.

    Args:
        handle: Which store to operate on
        output_format: Rendering of query results
        evaluator: Query back-end (default: NativeEvaluator)
        editor: Callable that opens a file for interactive editing
    """

    def __init__(
        self,
        handle: ConfigHandle,
        output_format: OutputFormat = OutputFormat.JSON,
        evaluator: _query.Evaluator | None = None,
        editor: Callable[[Path], None] = edit_file,
    ):
        self.handle = handle
        self.output_format = output_format
        self.evaluator = evaluator
        self.editor = editor

    @property
    def id(self) -> str:
        """Identifier of the store (its directory name)."""
        return self.handle.id

    # ===== Location =====

    def directory(self) -> Path | None:
        """Directory of this store, or None if it cannot be resolved."""
        return directory_path(self.handle)

    def path(self) -> Path | None:
        """Configuration file path, or None if it cannot be resolved."""
        return file_path(self.handle)

    # ===== Lifecycle =====

    def init(self) -> None:
        """Delete all existing configuration and create an empty file.

        This does not ask for confirmation.

        Raises:
            ConfigResolutionError: If the store cannot be located
            ConfigFileError: If the filesystem operations fail
        """
        storage.initialize(self.handle)

    def edit(self) -> None:
        """Open the configuration file in the user's editor.

        Raises:
            ConfigResolutionError: If the store cannot be located
            ConfigFileError: If the directory cannot be created
            ConfigEditorError: If the editor is missing or fails
        """
        path = self.path()
        if path is None:
            raise ConfigResolutionError(f"unable to locate config for {self.id!r}")
        try:
            ensure_directory(path.parent)
        except OSError as e:
            raise ConfigFileError(f"Failed to create {path.parent}: {e}") from e
        logger.info(f"Opening {path} for editing")
        self.editor(path)

    # ===== Reading =====

    def data(self) -> str:
        """Raw configuration text; empty if missing or unreadable."""
        return storage.read_raw(self.handle)

    def print(self, stream: TextIO | None = None) -> None:
        """Write the raw configuration followed by a newline."""
        print(self.data(), file=stream or sys.stdout)

    def query(self, selector: str) -> str:
        """Evaluate a jq-style selector against the configuration.

        Args:
            selector: Selector such as ``.`` or ``.server.port``

        Returns:
            Formatted matches, or empty string on no match or any error
        """
        return _query.query(self.handle, selector, self.output_format, self.evaluator)

    def query_print(self, selector: str, stream: TextIO | None = None) -> None:
        """Write the query result followed by a newline."""
        print(self.query(selector), file=stream or sys.stdout)

    # ===== Writing =====

    def overwrite(self, value: Any) -> None:
        """Replace the whole configuration document with value.

        Args:
            value: Mapping, sequence, scalar or dataclass instance

        Raises:
            ConfigSerializationError: If value cannot be encoded as YAML
            ConfigResolutionError: If the store cannot be located
            ConfigFileError: If the write fails
        """
        storage.overwrite(self.handle, value)
