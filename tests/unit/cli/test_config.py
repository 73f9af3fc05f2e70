"""Unit tests for config commands."""

from pathlib import Path

from reclaim.cli.main import app
from reclaim.core.config import get_default_config, load_config
from typer.testing import CliRunner

runner = CliRunner()


class TestConfigInit:
    """Tests for reclaim config init."""

    def test_writes_default_config(self, isolated_dirs: dict[str, Path]) -> None:
        """init writes a loadable default config."""
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0
        path = isolated_dirs["config"] / "config.toml"
        assert path.exists()
        loaded = load_config(path)
        assert loaded.policy == get_default_config().policy
        assert loaded.run == get_default_config().run

    def test_refuses_overwrite(self, isolated_dirs: dict[str, Path]) -> None:
        """init does not overwrite without --force."""
        runner.invoke(app, ["config", "init"])
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_force_overwrites(self, isolated_dirs: dict[str, Path]) -> None:
        """--force replaces an existing file."""
        path = isolated_dirs["config"] / "config.toml"
        path.parent.mkdir(parents=True)
        path.write_text("garbage = [")
        result = runner.invoke(app, ["config", "init", "--force"])
        assert result.exit_code == 0
        assert load_config(path).run.max_workers == 4


class TestConfigShow:
    """Tests for reclaim config show."""

    def test_shows_effective_config(self, isolated_dirs: dict[str, Path]) -> None:
        """show prints the defaults as TOML."""
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "[policy]" in result.stdout
        assert "min_age_seconds = 300.0" in result.stdout
        assert "[[targets]]" in result.stdout

    def test_broken_config(self, isolated_dirs: dict[str, Path], tmp_path: Path) -> None:
        """A broken config is reported as an error."""
        path = tmp_path / "broken.toml"
        path.write_text("[policy\n")
        result = runner.invoke(app, ["config", "show", "--config", str(path)])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output
