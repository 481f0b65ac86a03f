"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from snipfinder.cli import _build_config, _setup_logging, app
from snipfinder.index.defaults import seed_default_snippets
from snipfinder.index.storage import LocalSnippetStore


runner = CliRunner()


@pytest.fixture
def snippets_dir(tmp_path: Path) -> Path:
    root = tmp_path / "snippets"
    seed_default_snippets(LocalSnippetStore(root))
    return root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("snipfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("snipfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestBuildConfig:
    """Tests for _build_config helper."""

    def test_overrides(self, tmp_path: Path) -> None:
        """Applies the given options on top of the defaults."""
        config = _build_config(tmp_path, limit=5, style="dark")
        assert config.snippets_dir == tmp_path
        assert config.results_limit == 5
        assert config.style == "dark"

    def test_invalid_style(self, tmp_path: Path) -> None:
        """Rejects unknown styles."""
        with pytest.raises(ValueError):
            _build_config(tmp_path, style="neon")


class TestSearchCommand:
    """Tests for the search command."""

    def test_search_name(self, snippets_dir: Path) -> None:
        """Prints matching snippets."""
        result = runner.invoke(app, ["search", "connect", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "SSH/connect" in result.stdout

    def test_search_with_filter(self, snippets_dir: Path) -> None:
        """Narrows name matches by content."""
        result = runner.invoke(app, ["search", "find", "size", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "Match" in result.stdout
        assert "Find/files" in result.stdout
        assert "exec" not in result.stdout

    def test_search_no_matches(self, snippets_dir: Path) -> None:
        """Shows a warning when nothing matches."""
        result = runner.invoke(app, ["search", "xyz123", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "No matches found." in result.stdout

    def test_search_invalid_style(self, snippets_dir: Path) -> None:
        """Rejects unknown highlight styles."""
        result = runner.invoke(
            app, ["search", "find", "--dir", str(snippets_dir), "--style", "neon"]
        )
        assert result.exit_code != 0


class TestListCommand:
    """Tests for the list command."""

    def test_list(self, snippets_dir: Path) -> None:
        """Lists stored snippets."""
        result = runner.invoke(app, ["list", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "connect" in result.stdout

    def test_list_empty(self, tmp_path: Path) -> None:
        """Shows a warning for an empty store."""
        result = runner.invoke(app, ["list", "--dir", str(tmp_path / "empty")])
        assert result.exit_code == 0
        assert "No snippets found." in result.stdout


class TestSnippetCommands:
    """Tests for show, add, remove, rename and seed."""

    def test_show(self, snippets_dir: Path) -> None:
        """Prints the snippet content verbatim."""
        result = runner.invoke(app, ["show", "SSH", "connect", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "ssh ${user}@${host}" in result.stdout

    def test_show_missing(self, snippets_dir: Path) -> None:
        """Fails for unknown snippets."""
        result = runner.invoke(app, ["show", "SSH", "missing", "--dir", str(snippets_dir)])
        assert result.exit_code == 1
        assert "Unable to load content" in result.stdout

    def test_add(self, tmp_path: Path) -> None:
        """Saves a snippet given inline."""
        result = runner.invoke(app, ["add", "Git", "status", "git status", "--dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "Saved" in result.stdout
        assert (tmp_path / "Git" / "status").read_text(encoding="utf-8") == "git status"

    def test_add_from_file(self, tmp_path: Path) -> None:
        """Saves a snippet read from a file."""
        source = tmp_path / "cmd.txt"
        source.write_text("git log --oneline", encoding="utf-8")
        store_dir = tmp_path / "snippets"

        result = runner.invoke(
            app, ["add", "Git", "log", "--file", str(source), "--dir", str(store_dir)]
        )
        assert result.exit_code == 0
        assert LocalSnippetStore(store_dir).read_content("Git", "log") == "git log --oneline"

    def test_add_requires_content(self, tmp_path: Path) -> None:
        """Rejects a snippet without content."""
        result = runner.invoke(app, ["add", "Git", "status", "--dir", str(tmp_path)])
        assert result.exit_code != 0

    def test_add_invalid_name(self, tmp_path: Path) -> None:
        """Fails for names with path separators."""
        result = runner.invoke(app, ["add", "Git", "a/b", "x", "--dir", str(tmp_path)])
        assert result.exit_code == 1

    def test_remove(self, snippets_dir: Path) -> None:
        """Deletes a snippet."""
        result = runner.invoke(app, ["remove", "SSH", "connect", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "Removed" in result.stdout
        assert not (snippets_dir / "SSH" / "connect").exists()

    def test_remove_missing(self, snippets_dir: Path) -> None:
        """Fails for unknown snippets."""
        result = runner.invoke(app, ["remove", "SSH", "missing", "--dir", str(snippets_dir)])
        assert result.exit_code == 1
        assert "Snippet not found" in result.stdout

    def test_rename(self, snippets_dir: Path) -> None:
        """Moves a snippet keeping its content."""
        result = runner.invoke(
            app, ["rename", "SSH", "connect", "SSH", "login", "--dir", str(snippets_dir)]
        )
        assert result.exit_code == 0
        store = LocalSnippetStore(snippets_dir)
        assert store.read_content("SSH", "login") == "ssh ${user}@${host}"
        assert not store.exists("SSH", "connect")

    def test_seed(self, tmp_path: Path) -> None:
        """Writes the starter snippets."""
        result = runner.invoke(app, ["seed", "--dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "Wrote 11 snippets" in result.stdout

    def test_seed_twice(self, snippets_dir: Path) -> None:
        """Skips snippets that already exist."""
        result = runner.invoke(app, ["seed", "--dir", str(snippets_dir)])
        assert result.exit_code == 0
        assert "Wrote 0 snippets" in result.stdout


class TestPickCommand:
    """Tests for the interactive pick command."""

    def test_pick_sends_selection(self, snippets_dir: Path) -> None:
        """Prints the selected snippet's content."""
        result = runner.invoke(app, ["pick", "--dir", str(snippets_dir)], input="connect\n\n")
        assert result.exit_code == 0
        assert "SSH/connect" in result.stdout
        assert "ssh ${user}@${host}" in result.stdout

    def test_pick_navigation(self, snippets_dir: Path) -> None:
        """Moves the cursor before sending."""
        result = runner.invoke(
            app, ["pick", "--dir", str(snippets_dir)], input="git\n:p\n:n\n:pick\n"
        )
        assert result.exit_code == 0
        assert 'git config --global user.email "${email}"' in result.stdout

    def test_pick_quit(self, snippets_dir: Path) -> None:
        """Exits without sending anything."""
        result = runner.invoke(app, ["pick", "--dir", str(snippets_dir)], input=":q\n")
        assert result.exit_code == 0
        assert "${user}" not in result.stdout

    def test_pick_nothing_selected(self, snippets_dir: Path) -> None:
        """Warns when committing an empty result list."""
        result = runner.invoke(app, ["pick", "--dir", str(snippets_dir)], input="\n")
        assert result.exit_code == 0
        assert "Nothing selected." in result.stdout

    def test_pick_end_of_input(self, snippets_dir: Path) -> None:
        """Closes cleanly when input runs out."""
        result = runner.invoke(app, ["pick", "--dir", str(snippets_dir)], input="")
        assert result.exit_code == 0


class TestWebCommand:
    """Tests for the web command."""

    def test_web_starts_server(self, snippets_dir: Path) -> None:
        """Starts uvicorn server with correct parameters."""
        with patch("uvicorn.run") as mock_uvicorn_run:
            result = runner.invoke(
                app, ["web", "--host", "0.0.0.0", "--port", "9000", "--dir", str(snippets_dir)]
            )
            assert result.exit_code == 0
            mock_uvicorn_run.assert_called_once()
            call_kwargs = mock_uvicorn_run.call_args[1]
            assert call_kwargs["host"] == "0.0.0.0"
            assert call_kwargs["port"] == 9000

    def test_web_warns_missing_directory(self, tmp_path: Path) -> None:
        """Warns when the snippets directory does not exist."""
        with patch("uvicorn.run"):
            result = runner.invoke(app, ["web", "--dir", str(tmp_path / "missing")])
            assert result.exit_code == 0
            assert "snippets directory not found" in result.stdout
