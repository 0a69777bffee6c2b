"""Tests for stat tables and difficulty ladders.

Covers:
- Default table carries every template the default ladder names
- JSON stat tables validate through pydantic, bad input → ConfigurationError
- Ladder validation: empty ladder, unknown template
- Ladder loading from disk
- Stat copies are independent
"""

import sys
import os
import json

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.core.enums import BossType, TowerAIType
from combat_ai.core.errors import ConfigurationError
from combat_ai.core.ladder import DEFAULT_LADDER, DifficultyLevel, load_ladder, validate_ladder
from combat_ai.core.stats import BossStats, default_stat_table, load_stat_table, parse_stat_table


class TestStatTable:
    def test_default_ladder_is_valid_against_default_table(self):
        assert validate_ladder(DEFAULT_LADDER, default_stat_table()) == DEFAULT_LADDER

    def test_parse_from_json_data(self):
        table = parse_stat_table({
            "bosses": {"ogre": {"max_health": 900, "boss_type": 1}},
            "smart_towers": {"sniper": {"ai_type": 3, "damage": 40}},
        })
        assert table.bosses["ogre"].max_health == 900
        assert table.bosses["ogre"].boss_type == BossType.TACTICAL
        assert table.smart_towers["sniper"].ai_type == TowerAIType.AMBUSHER
        assert table.has_template("sniper")
        assert not table.has_template("turret")

    def test_bad_field_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            parse_stat_table({"bosses": {"ogre": {"max_health": "lots"}}})

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_stat_table(tmp_path / "nope.json")

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "stats.json"
        path.write_text(json.dumps({"enemies": {"grunt": {"max_health": 40}}}), encoding="utf-8")
        table = load_stat_table(path)
        assert table.enemies["grunt"].max_health == 40

    def test_copies_are_independent(self):
        base = BossStats()
        copy = base.copy()
        copy.max_health = 1.0
        assert base.max_health == 500.0


class TestLadder:
    def test_empty_ladder_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_ladder((), default_stat_table())

    def test_unknown_template_rejected(self):
        ladder = (DifficultyLevel(name="Odd", tower_templates=("laser",)),)
        with pytest.raises(ConfigurationError):
            validate_ladder(ladder, default_stat_table())

    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            DifficultyLevel(name="Off", rating=11)

    def test_load_ladder(self, tmp_path):
        path = tmp_path / "ladder.json"
        path.write_text(json.dumps([
            {"name": "Calm", "rating": 1, "enemy_templates": ["soldier"]},
            {"name": "Storm", "rating": 9, "boss_templates": ["warlord"], "health_multiplier": 2.0},
        ]), encoding="utf-8")
        ladder = load_ladder(path)
        assert [lvl.name for lvl in ladder] == ["Calm", "Storm"]
        assert ladder[0].enemy_templates == ("soldier",)
        assert ladder[1].health_multiplier == 2.0

    def test_load_invalid_ladder(self, tmp_path):
        path = tmp_path / "ladder.json"
        path.write_text(json.dumps([{"rating": 3}]), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_ladder(path)
