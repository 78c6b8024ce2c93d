"""
Unit Tests for the ProgressEntry Domain Model
=============================================

Covers the shape shared by achievements, quests, milestones and weekly
challenges: clamped progress, one-way unlock, rewards and triggers.
"""

import pytest

from manifest_garden.domain.models.base import DomainValidationError
from manifest_garden.domain.models.progress import ProgressEntry, Reward, Trigger


def _entry(target: int = 10, mode: str = "increment", payload_key=None) -> ProgressEntry:
    return ProgressEntry(
        entry_id="plant_10",
        kind="achievement",
        title="Gardener",
        target_value=target,
        reward=Reward(gems=25, seeds_by_rarity={"rare": 1}),
        trigger=Trigger(event="garden.planted", mode=mode, payload_key=payload_key),
    )


@pytest.mark.unit
@pytest.mark.domain
class TestProgress:
    """Test progress and unlocking."""

    def test_progress_clamps_and_unlocks(self):
        # Arrange
        entry = _entry()

        # Act
        first = entry.advance(7, now_ms=1)
        second = entry.advance(5, now_ms=2)

        # Assert
        assert first is False
        assert second is True
        assert entry.current_value == 10
        assert entry.unlocked
        assert entry.unlocked_at_ms == 2

    def test_progress_after_unlock_is_noop(self):
        entry = _entry(target=1)
        entry.advance(1, now_ms=1)
        entry.clear_domain_events()

        assert entry.advance(3, now_ms=2) is False
        assert entry.current_value == 1
        assert entry.unlocked_at_ms == 1
        assert entry.clear_domain_events() == []

    def test_unlock_emits_event_with_reward(self):
        entry = _entry(target=1)

        entry.advance(1, now_ms=1)
        events = entry.clear_domain_events()

        assert events[0].event_name == "achievement.unlocked"
        assert events[0].payload["reward"] == {"gems": 25, "seeds_by_rarity": {"rare": 1}}

    def test_set_value_never_goes_negative(self):
        entry = _entry(mode="set", payload_key="level")

        entry.set_value(-4, now_ms=1)

        assert entry.current_value == 0

    def test_distinct_values_counted_once(self):
        entry = _entry(target=3, mode="distinct", payload_key="category")

        entry.observe_distinct("love", now_ms=1)
        entry.observe_distinct("love", now_ms=2)
        unlocked = entry.observe_distinct("peace", now_ms=3)

        assert unlocked is False
        assert entry.current_value == 2

    def test_restored_state_is_clamped(self):
        entry = _entry()

        entry.restore_state({"currentValue": 99, "unlocked": False})

        assert entry.current_value == 10

    def test_target_must_be_positive(self):
        with pytest.raises(DomainValidationError):
            _entry(target=0)


@pytest.mark.unit
@pytest.mark.domain
class TestRewardAndTrigger:
    """Test reward parsing and trigger matching."""

    def test_single_seed_shape_is_folded_into_rarity_map(self):
        reward = Reward.from_dict({"gems": 10, "seeds": {"rarity": "Epic", "count": 2}})

        assert reward.seeds_by_rarity == {"epic": 2}
        assert reward.gems == 10

    def test_negative_reward_rejected(self):
        with pytest.raises(DomainValidationError):
            Reward(gems=-1)

    def test_unknown_seed_rarity_rejected(self):
        with pytest.raises(DomainValidationError):
            Reward(seeds_by_rarity={"mythic": 1})

    def test_filters_must_match(self):
        trigger = Trigger.from_dict(
            {"event": "garden.harvested", "filters": {"stage": "blooming"}}
        )

        assert trigger.matches("garden.harvested", {"stage": "blooming"})
        assert not trigger.matches("garden.harvested", {"stage": "sprout"})
        assert not trigger.matches("garden.planted", {"stage": "blooming"})

    def test_set_mode_requires_field(self):
        with pytest.raises(DomainValidationError):
            Trigger(event="player.leveled_up", mode="set")

    def test_unknown_mode_rejected(self):
        with pytest.raises(DomainValidationError):
            Trigger(event="garden.planted", mode="multiply")

    def test_definition_builds_fresh_entry(self):
        entry = ProgressEntry.from_definition(
            "quest",
            {
                "id": "daily_care",
                "title": "Daily Care",
                "target": 5,
                "reward": {"gems": 35},
                "trigger": {"event": "garden.nurtured"},
            },
            expires_at_ms=1000,
            entry_id="daily_care_2025-03-12",
        )

        assert entry.id == "daily_care_2025-03-12"
        assert entry.current_value == 0
        assert entry.is_expired(1000)
        assert not entry.is_expired(999)
