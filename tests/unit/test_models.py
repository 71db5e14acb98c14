"""Tests for storyline domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from storyweave.models.storyline import (
    BattleContent,
    DecisionContent,
    EndContent,
    StoryContent,
    StoryEvent,
    Storyline,
    StoryOption,
    default_enemy,
)


class TestEventContent:
    """Content payloads are selected by their ``type`` tag."""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            ({"type": "decision"}, DecisionContent),
            ({"type": "battle"}, BattleContent),
            ({"type": "story"}, StoryContent),
            ({"type": "end"}, EndContent),
        ],
    )
    def test_discriminator(self, payload: dict[str, str], expected: type) -> None:
        event = StoryEvent.model_validate({"id": "e1", "content": payload})
        assert isinstance(event.content, expected)

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StoryEvent.model_validate({"id": "e1", "content": {"type": "cutscene"}})

    def test_default_content_is_decision(self) -> None:
        assert isinstance(StoryEvent(id="e1").content, DecisionContent)

    def test_opaque_payloads_kept(self) -> None:
        condition = {"op": "has_item", "item": "key", "nested": [1, 2]}
        option = StoryOption(id="o1", condition=condition)
        assert option.condition == condition

        content = StoryContent(rewards=[{"kind": "gold", "amount": 5}])
        assert content.rewards == [{"kind": "gold", "amount": 5}]


class TestNoneCoercion:
    """Nulls from stored data become empty values."""

    def test_event_fields(self) -> None:
        event = StoryEvent.model_validate({"id": "e1", "name": None, "action_points": None})
        assert event.name == ""
        assert event.action_points == 0

    def test_option_fields(self) -> None:
        option = StoryOption.model_validate({"id": "o1", "text": None, "next_event_id": None})
        assert option.text == ""
        assert option.next_event_id == ""

    def test_option_without_id_gets_one(self) -> None:
        first = StoryOption.model_validate({"id": None})
        second = StoryOption.model_validate({"id": ""})
        assert first.id
        assert second.id
        assert first.id != second.id

    def test_battle_fields(self) -> None:
        content = BattleContent.model_validate(
            {"type": "battle", "enemy": None, "win": None, "lose": {"next_event_id": None}}
        )
        assert content.enemy == default_enemy()
        assert content.win.next_event_id == ""
        assert content.win.rewards == []
        assert content.lose.next_event_id == ""

    def test_storyline_fields(self) -> None:
        storyline = Storyline.model_validate(
            {"id": "s", "name": None, "start_event_id": None, "events": None}
        )
        assert storyline.name == ""
        assert storyline.start_event_id == ""
        assert storyline.events == []


class TestConstraints:
    def test_negative_action_points_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StoryEvent(id="e1", action_points=-1)

    def test_empty_event_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StoryEvent(id="")

    def test_unknown_node_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StoryEvent.model_validate({"id": "e1", "node_type": "finale"})


class TestStorylineLookup:
    def test_event_ids_in_authoring_order(self, abc_storyline: Storyline) -> None:
        assert abc_storyline.event_ids() == ["A", "B", "C"]

    def test_get_event(self, abc_storyline: Storyline) -> None:
        event = abc_storyline.get_event("B")
        assert event is not None
        assert event.name == "Crossroads"
        assert abc_storyline.get_event("Z") is None

    def test_has_event(self, abc_storyline: Storyline) -> None:
        assert abc_storyline.has_event("C")
        assert not abc_storyline.has_event("")

    def test_default_enemy_is_fresh(self) -> None:
        first = default_enemy()
        first["traits"].append("x")
        assert default_enemy()["traits"] == []

    def test_json_roundtrip_keeps_content_kind(self, abc_storyline: Storyline) -> None:
        restored = Storyline.model_validate_json(abc_storyline.model_dump_json())
        assert restored == abc_storyline
