"""Tests for CLI commands."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from siena.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def site(build_root, png_bytes):
    """Build root with one page referencing one real PNG."""
    (build_root / "pic.png").write_bytes(png_bytes)
    (build_root / "index.html").write_text('<p><img src="./pic.png" alt="Pic"></p>', encoding="utf-8")
    return build_root


class TestCLIGroup:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "siena" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0


class TestBuildCommand:
    def test_help(self, runner):
        result = runner.invoke(cli, ["build", "--help"])
        assert result.exit_code == 0
        assert "--root" in result.output
        assert "--gc-scope" in result.output
        assert "--loading" in result.output

    def test_missing_paths(self, runner):
        result = runner.invoke(cli, ["build"])
        assert result.exit_code != 0

    def test_nonexistent_path(self, runner):
        result = runner.invoke(cli, ["build", "nonexistent_file.html"])
        assert result.exit_code != 0

    def test_rewrites_page(self, runner, site):
        result = runner.invoke(
            cli,
            ["build", str(site / "index.html"), "--root", str(site)],
            env={"SIENA_FORMATS": "webp"},
        )
        assert result.exit_code == 0, result.output
        assert "rewrote 1 images" in result.output
        html = (site / "index.html").read_text(encoding="utf-8")
        assert "<picture>" in html
        assert 'loading="lazy"' in html
        cached = sorted(p.suffix for p in (site / "public" / ".siena").iterdir())
        assert cached == [".jpg", ".webp"]

    def test_loading_option(self, runner, site):
        result = runner.invoke(
            cli,
            ["build", str(site), "--root", str(site), "--loading", "eager"],
            env={"SIENA_FORMATS": "webp"},
        )
        assert result.exit_code == 0, result.output
        assert 'loading="eager"' in (site / "index.html").read_text(encoding="utf-8")

    def test_failed_document_exits_nonzero(self, runner, build_root):
        page = build_root / "broken.html"
        page.write_text('<img src="/missing.png">', encoding="utf-8")
        result = runner.invoke(cli, ["build", str(page), "--root", str(build_root)])
        assert result.exit_code == 1
        assert "Failed" in result.output

    def test_invalid_config(self, runner, site):
        result = runner.invoke(
            cli,
            ["build", str(site), "--root", str(site)],
            env={"SIENA_MAX_WIDTH": "0"},
        )
        assert result.exit_code == 1
        assert "Error" in result.output


class TestCacheCommands:
    def test_cache_help(self, runner):
        result = runner.invoke(cli, ["cache", "--help"])
        assert result.exit_code == 0
        assert "stats" in result.output
        assert "clear" in result.output

    def test_cache_stats(self, runner, cache_dir, build_root):
        (cache_dir / "abc.jpg").write_bytes(b"x")
        (cache_dir / "abc.webp").write_bytes(b"x")
        result = runner.invoke(cli, ["cache", "stats", "--root", str(build_root)])
        assert result.exit_code == 0
        assert "Cache Statistics" in result.output

    def test_cache_clear(self, runner, cache_dir, build_root):
        (cache_dir / "abc.jpg").write_bytes(b"x")
        result = runner.invoke(cli, ["cache", "clear", "--yes", "--root", str(build_root)])
        assert result.exit_code == 0
        assert list(cache_dir.iterdir()) == []

    def test_cache_clear_requires_confirmation(self, runner, cache_dir, build_root):
        (cache_dir / "abc.jpg").write_bytes(b"x")
        result = runner.invoke(cli, ["cache", "clear", "--root", str(build_root)], input="n\n")
        assert result.exit_code != 0
        assert (cache_dir / "abc.jpg").exists()

    @pytest.mark.parametrize("command", [["stats"], ["clear", "--yes"]])
    def test_invalid_config(self, runner, build_root, command):
        result = runner.invoke(
            cli,
            ["cache", *command, "--root", str(build_root)],
            env={"SIENA_MAX_WIDTH": "0"},
        )
        assert result.exit_code == 1
        assert "Error" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_cache_clear_delete_failure(self, runner, cache_dir, build_root, monkeypatch):
        (cache_dir / "abc.jpg").write_bytes(b"x")

        def read_only(self, *args, **kwargs):
            raise PermissionError(f"read-only: {self.name}")

        monkeypatch.setattr(Path, "unlink", read_only)
        result = runner.invoke(cli, ["cache", "clear", "--yes", "--root", str(build_root)])

        assert result.exit_code == 1
        assert "read-only: abc.jpg" in result.output
        assert isinstance(result.exception, SystemExit)
