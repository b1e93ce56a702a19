"""branch-config: one YAML configuration file per application.

This library keeps a single configuration document for an application (or a
command tree sharing one program) at ``<user config dir>/<id>/config.yaml``.
Writes are locked and atomic across processes, reads always go to disk, and
values are looked up with jq-style selectors. There is deliberately no way to
set individual keys: the document is replaced whole, or edited by the user.

Public API:
    ConfigStore: Main class for configuration operations
    ConfigHandle: Dataclass identifying a store (id, base directory, file name)
    OutputFormat: Enum for JSON/YAML query output
    NativeEvaluator, JqEvaluator: Query back-ends
    build_config_command: click group to attach to an application's CLI
    ConfigError and subclasses: Exception types

Example:
    ```python
    from pathlib import Path
    from branch_config import ConfigHandle, ConfigStore

    store = ConfigStore(ConfigHandle("mytool"))

    store.overwrite({"server": {"host": "localhost", "port": 8080}})
    store.query(".server.port")  # "8080"
    store.data()  # "server:\\n  host: localhost\\n  port: 8080\\n"
    ```
"""

from .cli import build_config_command
from .exceptions import ConfigEditorError
from .exceptions import ConfigError
from .exceptions import ConfigFileError
from .exceptions import ConfigResolutionError
from .exceptions import ConfigSerializationError
from .exceptions import QueryEvaluationError
from .manager import ConfigStore
from .models import DEFAULT_FILE_NAME
from .models import ConfigHandle
from .models import OutputFormat
from .query import Evaluator
from .query import JqEvaluator
from .query import NativeEvaluator

__version__ = "0.1.0"

__all__ = [
    "ConfigStore",
    "ConfigHandle",
    "OutputFormat",
    "DEFAULT_FILE_NAME",
    "Evaluator",
    "NativeEvaluator",
    "JqEvaluator",
    "build_config_command",
    "ConfigError",
    "ConfigResolutionError",
    "ConfigFileError",
    "ConfigSerializationError",
    "ConfigEditorError",
    "QueryEvaluationError",
]
