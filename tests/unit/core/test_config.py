"""Unit tests for configuration loading and saving."""

import tomllib
from pathlib import Path

import pytest
from reclaim.core.config import (
    ReclaimConfig,
    RunSettings,
    TargetSpec,
    config_to_dict,
    get_default_config,
    load_config,
    load_config_or_default,
    save_config,
)
from reclaim.core.errors import ConfigError, ConfigNotFoundError, ConfigParseError
from reclaim.processes.policy import MB
from reclaim.sweep.targets import DEFAULT_TARGETS, ExpansionMode


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ConfigNotFoundError."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("[policy\nmin_age_seconds = ")
        with pytest.raises(ConfigParseError, match="Invalid TOML"):
            load_config(path)

    def test_partial_config_uses_defaults(self, tmp_path: Path) -> None:
        """Missing sections and keys take default values."""
        path = tmp_path / "config.toml"
        path.write_text("[policy]\nmin_age_seconds = 30\n\n[run]\ntimeout_seconds = 45\n")

        config = load_config(path)

        assert config.policy.min_age_seconds == 30
        assert config.policy.idle_memory_floor_bytes == 50 * MB
        assert config.run.timeout_seconds == 45
        assert config.run.max_workers == 4
        assert config.sweep_targets() == DEFAULT_TARGETS

    def test_custom_targets(self, tmp_path: Path) -> None:
        """[[targets]] replace the defaults."""
        path = tmp_path / "config.toml"
        path.write_text(
            '[[targets]]\nroot_path = "~/.cache/mozilla/firefox"\ncategory = "browser-cache"\n'
            'expansion = "per_subdirectory"\nrelative_suffix = "cache2"\n'
        )
        targets = load_config(path).sweep_targets()
        assert len(targets) == 1
        assert targets[0].expansion == ExpansionMode.PER_SUBDIRECTORY

    def test_target_spec_matches_sweep_target_dict(self) -> None:
        """TargetSpec converts through the SweepTarget dict form both ways."""
        for target in DEFAULT_TARGETS:
            spec = TargetSpec.from_target(target)
            assert spec.model_dump(mode="json", exclude_none=True) == target.to_dict()
            assert spec.to_target() == target

    def test_empty_target_list_means_no_targets(self, tmp_path: Path) -> None:
        """An explicit empty list disables sweeping."""
        path = tmp_path / "config.toml"
        path.write_text("targets = []\n")
        assert load_config(path).sweep_targets() == ()

    @pytest.mark.parametrize(
        "content",
        [
            "[policy]\nmin_age_seconds = -5\n",
            "[policy]\nunknown_key = 1\n",
            "[run]\ntimeout_seconds = 0\n",
            "[run]\nmax_workers = 0\n",
            "[policy]\ncritical_name_patterns = [\"\"]\n",
            '[[targets]]\nroot_path = "/x"\ncategory = "x"\nrelative_suffix = "cache"\n',
            '[[targets]]\nroot_path = "/x"\ncategory = "x"\nexpansion = "per_subdirectory"\n',
        ],
    )
    def test_invalid_content(self, tmp_path: Path, content: str) -> None:
        """Out-of-range values and bad targets fail at load time."""
        path = tmp_path / "config.toml"
        path.write_text(content)
        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)


class TestLoadConfigOrDefault:
    """Tests for load_config_or_default()."""

    def test_default_when_absent(self, isolated_dirs: dict[str, Path]) -> None:
        """No file at the default location yields the defaults."""
        assert load_config_or_default() == get_default_config()

    def test_explicit_missing_path_raises(self, tmp_path: Path) -> None:
        """An explicit path must exist."""
        with pytest.raises(ConfigNotFoundError):
            load_config_or_default(tmp_path / "missing.toml")

    def test_reads_default_location(self, isolated_dirs: dict[str, Path]) -> None:
        """A file at the default location is loaded."""
        isolated_dirs["config"].mkdir(parents=True)
        (isolated_dirs["config"] / "config.toml").write_text("[run]\nmax_workers = 2\n")
        assert load_config_or_default().run.max_workers == 2


class TestSaveConfig:
    """Tests for save_config()."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back equal, with targets written out."""
        config = ReclaimConfig(
            run=RunSettings(timeout_seconds=120, max_workers=2),
            targets=[TargetSpec(root_path="~/.cache/thumbnails", category="thumbnails")],
        )
        path = save_config(config, tmp_path / "sub" / "config.toml")

        assert load_config(path) == config
        assert not list(path.parent.glob("*.tmp"))

    def test_default_targets_written_explicitly(self, tmp_path: Path) -> None:
        """Saving defaults writes every default target."""
        path = save_config(get_default_config(), tmp_path / "config.toml")
        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert len(data["targets"]) == len(DEFAULT_TARGETS)
        assert "relative_suffix" not in data["targets"][0]
        assert data["policy"]["critical_name_patterns"] == sorted(
            data["policy"]["critical_name_patterns"]
        )

    def test_dict_has_all_sections(self) -> None:
        """config_to_dict() emits policy, run, and targets."""
        assert set(config_to_dict(get_default_config())) == {"policy", "run", "targets"}

    def test_write_failure(self, tmp_path: Path) -> None:
        """Unwritable destinations raise ConfigError."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(ConfigError, match="Failed to write config"):
            save_config(get_default_config(), blocker / "config.toml")
