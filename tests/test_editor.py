"""Tests for the external editor hand-off."""

import os
import shlex
import sys

import pytest
from branch_config import ConfigEditorError
from branch_config.editor import edit_file
from branch_config.editor import resolve_editor


class TestResolveEditor:
    """Test editor resolution order."""

    def test_visual_first(self):
        """Test $VISUAL wins over $EDITOR."""
        assert resolve_editor({"VISUAL": "code -w", "EDITOR": "nano"}) == ["code", "-w"]

    def test_editor_second(self):
        """Test $EDITOR is used when $VISUAL is unset or blank."""
        assert resolve_editor({"VISUAL": " ", "EDITOR": "emacs -nw"}) == ["emacs", "-nw"]

    @pytest.mark.skipif(os.name == "nt", reason="POSIX executables")
    def test_fallback_on_path(self, tmp_path):
        """Test fallback editors are searched on PATH in order."""
        for name in ("vim", "nano"):
            fake = tmp_path / name
            fake.write_text("#!/bin/sh\n")
            fake.chmod(0o755)

        assert resolve_editor({"PATH": str(tmp_path)}) == [str(tmp_path / "vim")]

    def test_nothing_found(self, tmp_path):
        """Test an error is raised when no editor is available."""
        with pytest.raises(ConfigEditorError, match="No editor found"):
            resolve_editor({"PATH": str(tmp_path)})


@pytest.mark.skipif(os.name == "nt", reason="POSIX shell quoting")
class TestEditFile:
    """Test running the editor."""

    def test_runs_editor_on_file(self, tmp_path, monkeypatch):
        """Test editor receives the file path and its changes persist."""
        script = "import sys; open(sys.argv[1], 'a').write('edited: true\\n')"
        monkeypatch.setenv("VISUAL", f"{shlex.quote(sys.executable)} -c {shlex.quote(script)}")
        target = tmp_path / "config.yaml"

        edit_file(target)

        assert target.read_text() == "edited: true\n"

    def test_nonzero_exit(self, tmp_path, monkeypatch):
        """Test a failing editor raises ConfigEditorError."""
        monkeypatch.setenv("VISUAL", f"{shlex.quote(sys.executable)} -c {shlex.quote('raise SystemExit(3)')}")

        with pytest.raises(ConfigEditorError, match="status 3"):
            edit_file(tmp_path / "config.yaml")

    def test_missing_editor_binary(self, tmp_path, monkeypatch):
        """Test an editor that cannot be started raises ConfigEditorError."""
        monkeypatch.setenv("VISUAL", str(tmp_path / "no-such-editor"))

        with pytest.raises(ConfigEditorError, match="Failed to start editor"):
            edit_file(tmp_path / "config.yaml")
