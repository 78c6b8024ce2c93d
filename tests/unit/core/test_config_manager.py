"""
Unit tests for ConfigManager and the static Config.
"""

import pytest

from manifest_garden.core.config.config import Config, StorageBackend
from manifest_garden.core.config.manager import ConfigManager, deep_merge
from manifest_garden.core.exceptions import ConfigurationError


@pytest.mark.unit
class TestConfigManager:
    """Test YAML loading, dot-notation reads and overrides."""

    def test_packaged_yaml_is_loaded(self, config_manager):
        assert config_manager.get("progression.combo.window_ms") == 5000
        assert config_manager.get("crafting.input_count") == 5
        assert config_manager.get("leaderboard.rank_thresholds.1") == 700

    def test_missing_key_returns_default(self, config_manager):
        assert config_manager.get("crafting.missing", default=3) == 3

    def test_dot_overrides_merge_over_defaults(self):
        config = ConfigManager(overrides={"progression.combo.window_ms": 3000})

        assert config.get("progression.combo.window_ms") == 3000
        assert config.get("progression.combo.step") == 3

    def test_overrides_are_per_instance(self):
        tuned = ConfigManager(overrides={"economy.energy.max_base": 20})
        default = ConfigManager()

        assert tuned.get("economy.energy.max_base") == 20
        assert default.get("economy.energy.max_base") == 15

    def test_reads_return_copies(self, config_manager):
        colors = config_manager.get("crafting.rarity_colors")
        colors["common"] = "#000000"

        assert config_manager.get("crafting.rarity_colors.common") == "#90EE90"

    def test_require_raises_for_missing_key(self, config_manager):
        with pytest.raises(ConfigurationError):
            config_manager.require("crafting.nope")

    def test_typed_getter_rejects_bad_value(self):
        config = ConfigManager(overrides={"crafting.input_count": "five"})

        with pytest.raises(ConfigurationError):
            config.get_int("crafting.input_count")

    def test_missing_config_dir_yields_empty_config(self, tmp_path):
        config = ConfigManager(config_dir=tmp_path / "absent")

        assert config.get("crafting.input_count") is None

    def test_float_and_bool_getters(self):
        config = ConfigManager(overrides={"shop.discount": "0.25", "shop.enabled": "yes"})

        assert config.get_float("shop.discount") == 0.25
        assert config.get_bool("shop.enabled") is True
        assert config.get_bool("shop.missing") is False

    def test_reload_keeps_overrides(self, tmp_path):
        (tmp_path / "crafting.yaml").write_text("crafting:\n  input_count: 5\n")
        config = ConfigManager(config_dir=tmp_path, overrides={"crafting.bonus": 1})
        (tmp_path / "crafting.yaml").write_text("crafting:\n  input_count: 6\n")

        config.reload()

        assert config.get_int("crafting.input_count") == 6
        assert config.get("crafting.bonus") == 1

    def test_deep_merge_keeps_siblings(self):
        base = {"a": {"b": 1, "c": 2}}

        deep_merge(base, {"a": {"b": 5}})

        assert base == {"a": {"b": 5, "c": 2}}


@pytest.mark.unit
class TestStaticConfig:
    """Test environment-driven settings."""

    @pytest.fixture
    def reload_config(self):
        yield
        Config.load()

    def test_storage_backend_from_environment(self, reload_config, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")

        Config.load()

        assert Config.STORAGE_BACKEND == StorageBackend.MEMORY.value

    def test_invalid_backend_falls_back_to_default(self, reload_config, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "floppy")

        Config.load()

        assert Config.STORAGE_BACKEND == StorageBackend.FILE.value
