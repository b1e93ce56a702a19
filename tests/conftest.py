"""Shared fixtures for branch-config tests."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from branch_config import ConfigHandle

SAMPLE_DOCUMENT = """\
some: thing
here: goes
command:
  path: /here/we/go
"""


@pytest.fixture
def base_dir():
    """Temporary directory standing in for the user config directory."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "testdata"


@pytest.fixture
def handle(base_dir):
    """Handle for the "foo" store under the temporary base directory."""
    return ConfigHandle("foo", base_dir=base_dir)


@pytest.fixture
def sample_handle(base_dir):
    """Handle for the "bar" store, pre-populated with SAMPLE_DOCUMENT."""
    handle = ConfigHandle("bar", base_dir=base_dir)
    directory = base_dir / "bar"
    directory.mkdir(parents=True)
    (directory / "config.yaml").write_text(SAMPLE_DOCUMENT)
    return handle
