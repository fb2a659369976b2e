"""Tests for PioneerConfig validation and loading."""

import json

import pytest

from pioneer.config import PioneerConfig
from pioneer.world import Content


class TestDefaults:
    def test_energy_policy(self, default_config):
        assert default_config.max_energy == 1000
        assert default_config.low_energy_threshold == 150
        assert default_config.charge_level == 250
        assert default_config.pilot_charge_level == 750

    def test_backpack_policy(self, default_config):
        assert default_config.full_backpack_fraction == 0.8
        assert default_config.low_backpack_fraction == 0.5
        assert default_config.gather_policy == "least"
        assert default_config.prices[Content.TREE] == 2
        assert default_config.prices[Content.ROCK] == 1

    def test_prices_not_shared(self):
        a = PioneerConfig()
        b = PioneerConfig()
        a.prices[Content.TREE] = 99
        assert b.prices[Content.TREE] == 2


class TestValidation:
    def test_low_threshold_above_charge_level(self):
        with pytest.raises(ValueError, match="energy thresholds"):
            PioneerConfig(low_energy_threshold=300, charge_level=250)

    def test_charge_level_above_max(self):
        with pytest.raises(ValueError):
            PioneerConfig(charge_level=2000)

    def test_backpack_fractions_order(self):
        with pytest.raises(ValueError, match="backpack fractions"):
            PioneerConfig(low_backpack_fraction=0.9, full_backpack_fraction=0.8)

    def test_unknown_gather_policy(self):
        with pytest.raises(ValueError, match="gather_policy"):
            PioneerConfig(gather_policy="random")

    @pytest.mark.parametrize("name", ["pickup_chance", "move_scan_chance", "detour_chance"])
    def test_probabilities(self, name):
        with pytest.raises(ValueError, match=name):
            PioneerConfig(**{name: 1.5})

    def test_history_capacity(self):
        with pytest.raises(ValueError, match="recent_positions"):
            PioneerConfig(recent_positions=0)

    def test_world_size(self):
        with pytest.raises(ValueError, match="world_size"):
            PioneerConfig(world_size=2)

    def test_termination_coverage(self):
        with pytest.raises(ValueError, match="termination_coverage"):
            PioneerConfig(termination_coverage=0.0)


class TestLoading:
    def test_from_dict_ignores_unknown_keys(self):
        config = PioneerConfig.from_dict({"verbose": False, "unknown": 1})
        assert config.verbose is False

    def test_from_dict_price_names(self):
        config = PioneerConfig.from_dict({"prices": {"tree": 5, "fish": 7}})
        assert config.prices == {Content.TREE: 5, Content.FISH: 7}

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "pioneer.json"
        path.write_text(json.dumps({"world_size": 32, "gather_policy": "most"}))

        config = PioneerConfig.from_file(path)

        assert config.world_size == 32
        assert config.gather_policy == "most"

    def test_from_yaml_file(self, tmp_path):
        pytest.importorskip("yaml")
        path = tmp_path / "pioneer.yaml"
        path.write_text("seed: 3\nprices:\n  rock: 4\n")

        config = PioneerConfig.from_file(str(path))

        assert config.seed == 3
        assert config.prices == {Content.ROCK: 4}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PioneerConfig.from_file(tmp_path / "missing.json")

    def test_file_without_mapping(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError, match="mapping"):
            PioneerConfig.from_file(path)

    def test_invalid_values_are_validated(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"low_energy_threshold": 900}))
        with pytest.raises(ValueError):
            PioneerConfig.from_file(path)
