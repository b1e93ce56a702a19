"""Hand-off of a configuration file to the user's editor."""

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path

from .exceptions import ConfigEditorError

logger = logging.getLogger(__name__)

FALLBACK_EDITORS = ("vi", "vim", "nano")


def resolve_editor(environ: Mapping[str, str] | None = None) -> list[str]:
    """Find the editor command to run.

    Order of preference: $VISUAL, $EDITOR, then the first fallback editor
    found on PATH.

    Args:
        environ: Environment to consult (default: os.environ)

    Returns:
        Command and arguments, without the file to edit

    Raises:
        ConfigEditorError: If no editor is available
    """
    env = os.environ if environ is None else environ
    for var in ("VISUAL", "EDITOR"):
        value = env.get(var, "").strip()
        if value:
            return shlex.split(value)

    for name in FALLBACK_EDITORS:
        found = shutil.which(name, path=env.get("PATH"))
        if found:
            return [found]

    raise ConfigEditorError(f"No editor found; set $VISUAL or $EDITOR or install one of {', '.join(FALLBACK_EDITORS)}")


def edit_file(path: Path) -> None:
    """Open path in the editor and wait until it exits.

    Raises:
        ConfigEditorError: If the editor cannot be started or fails
    """
    command = [*resolve_editor(), str(path)]
    logger.debug(f"Launching editor: {command}")
    try:
        result = subprocess.run(command, check=False)
    except OSError as e:
        raise ConfigEditorError(f"Failed to start editor {command[0]}: {e}") from e
    if result.returncode != 0:
        raise ConfigEditorError(f"Editor {command[0]} exited with status {result.returncode}")
