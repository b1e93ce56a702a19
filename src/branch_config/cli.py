"""Command-line interface for a configuration store.

``build_config_command`` returns a click group that can be attached to any
click program. Attached under ``mytool``, it manages the ``mytool`` store::

    mytool config init          (re)create an empty configuration
    mytool config file          path of the configuration file
    mytool config data          raw contents
    mytool config edit          open in $VISUAL / $EDITOR
    mytool config query .a.b    jq-style lookup

Each sub-command also answers to its first letter (``mytool config q .a``).
Run on its own as ``branch-config``, the store is named after the program
unless ``--id`` is given.
"""

import logging
import sys
from pathlib import Path

import click

from .exceptions import ConfigError
from .manager import ConfigStore
from .models import ConfigHandle
from .models import OutputFormat
from .models import executable_name

logger = logging.getLogger(__name__)


class _AliasedGroup(click.Group):
    """Group that also accepts one-letter aliases for its sub-commands."""

    aliases = {"i": "init", "f": "file", "d": "data", "e": "edit", "q": "query"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


def _interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _caller_id(ctx: click.Context) -> str:
    """Name of the command this group is attached under."""
    if ctx.parent is not None and ctx.parent.info_name:
        return ctx.parent.info_name
    return executable_name()


def build_config_command(name: str = "config", base_dir: Path | str | None = None) -> click.Group:
    """Create the configuration command group.

    Args:
        name: Name of the group
        base_dir: Override for the platform configuration directory

    Returns:
        Click group ready for ``add_command``
    """

    @click.group(name=name, cls=_AliasedGroup)
    @click.option("--id", "store_id", default=None, help="Configuration name (default: calling command)")
    @click.option(
        "--base-dir",
        "base_dir_option",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Directory holding all configurations",
    )
    @click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
    @click.pass_context
    def group(ctx: click.Context, store_id: str | None, base_dir_option: Path | None, verbose: bool) -> None:
        """Manage local YAML/JSON configuration.

        Values are changed by editing the whole file with `edit`; `query`
        looks values up with jq-like selectors.
        """
        if verbose:
            logging.basicConfig(level=logging.DEBUG)

        if isinstance(ctx.obj, ConfigStore) and store_id is None and base_dir_option is None:
            return

        root = base_dir_option if base_dir_option is not None else base_dir
        handle_id = store_id if store_id is not None else _caller_id(ctx)
        if root is None:
            handle = ConfigHandle(id=handle_id)
        else:
            handle = ConfigHandle(id=handle_id, base_dir=Path(root))
        ctx.obj = ConfigStore(handle)
        logger.debug(f"Using configuration {handle}")

    @group.command("init")
    @click.pass_obj
    def init_command(store: ConfigStore) -> None:
        """(Re)initialize the configuration, deleting what is there."""
        if _interactive():
            directory = store.directory()
            if directory is None:
                raise click.ClickException(f"unable to resolve config for {store.id!r}")
            if not click.confirm(f"Really initialize {directory}?", default=False):
                return
        try:
            store.init()
        except ConfigError as e:
            raise click.ClickException(str(e)) from e

    @group.command("file")
    @click.pass_obj
    def file_command(store: ConfigStore) -> None:
        """Print the full path to the configuration file."""
        path = store.path()
        if path is None:
            logger.warning(f"Unable to find config for {store.id!r}")
            click.echo("")
            return
        click.echo(str(path))

    @group.command("data")
    @click.pass_obj
    def data_command(store: ConfigStore) -> None:
        """Print the contents of the configuration file."""
        data = store.data()
        if data:
            click.echo(data, nl=not data.endswith("\n"))

    @group.command("edit")
    @click.pass_obj
    def edit_command(store: ConfigStore) -> None:
        """Open the configuration in an editor.

        \b
        The editor is the first of:
          $VISUAL
          $EDITOR
          vi, vim, nano
        """
        try:
            store.edit()
        except ConfigError as e:
            raise click.ClickException(str(e)) from e

    @group.command("query")
    @click.argument("selector")
    @click.option(
        "--format",
        "output_format",
        type=click.Choice([f.value for f in OutputFormat]),
        default=None,
        help="Render matches as JSON or YAML",
    )
    @click.pass_obj
    def query_command(store: ConfigStore, selector: str, output_format: str | None) -> None:
        """Print configuration values matching a jq-style SELECTOR."""
        if output_format is not None:
            store = ConfigStore(store.handle, OutputFormat(output_format), store.evaluator, store.editor)
        click.echo(store.query(selector))

    return group


cli = build_config_command("branch-config")


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
