"""Tests for transition slots, handles, defaults, and normalization."""

from __future__ import annotations

import pytest

from storyweave.graph.content import (
    default_content,
    default_event,
    default_option,
    handles_of,
    normalize_storyline,
    option_handle,
    parse_option_handle,
    slots_of,
    targets_of,
    with_slot_target,
)
from storyweave.models.storyline import (
    BattleBranch,
    BattleContent,
    DecisionContent,
    EndContent,
    StoryContent,
    StoryEvent,
    Storyline,
    StoryOption,
)


def _battle(win: str = "", lose: str = "") -> StoryEvent:
    return StoryEvent(
        id="fight",
        content=BattleContent(
            win=BattleBranch(next_event_id=win), lose=BattleBranch(next_event_id=lose)
        ),
    )


class TestTargetsOf:
    """Tests for targets_of."""

    def test_story_single_target(self) -> None:
        event = StoryEvent(id="s", content=StoryContent(next_event_id="x"))
        assert targets_of(event) == ["x"]

    def test_story_empty_target(self) -> None:
        event = StoryEvent(id="s", content=StoryContent())
        assert targets_of(event) == []

    def test_decision_skips_empty_options(self, abc_storyline: Storyline) -> None:
        event = abc_storyline.get_event("B")
        assert event is not None
        assert targets_of(event) == ["C"]

    def test_battle_win_before_lose(self) -> None:
        assert targets_of(_battle(win="w", lose="l")) == ["w", "l"]

    def test_end_has_no_targets(self) -> None:
        assert targets_of(StoryEvent(id="e", content=EndContent(text="bye"))) == []


class TestSlotsOf:
    """Tests for slots_of and slot labels."""

    def test_decision_slots_include_empty(self, abc_storyline: Storyline) -> None:
        event = abc_storyline.get_event("B")
        assert event is not None
        slots = slots_of(event)

        assert [s.handle_id for s in slots] == ["opt:opt1", "opt:opt2"]
        assert [s.label for s in slots] == ["Option 1", "Option 2"]
        assert [s.target for s in slots] == ["C", ""]

    def test_battle_slot_labels(self) -> None:
        slots = slots_of(_battle())
        assert [(s.handle_id, s.label) for s in slots] == [
            ("win", "Win branch"),
            ("lose", "Lose branch"),
        ]

    def test_story_slot(self) -> None:
        slots = slots_of(StoryEvent(id="s", content=StoryContent(next_event_id="n")))
        assert len(slots) == 1
        assert slots[0].handle_id == "next"
        assert slots[0].kind == "next"


class TestHandles:
    """Tests for handle ids and handle items."""

    def test_option_handle_roundtrip(self) -> None:
        assert parse_option_handle(option_handle("abc")) == "abc"

    def test_parse_non_option_handle(self) -> None:
        assert parse_option_handle("win") is None

    def test_decision_handle_labels_fall_back_to_position(self) -> None:
        event = StoryEvent(
            id="d",
            content=DecisionContent(
                options=[StoryOption(id="o1", text="Fight"), StoryOption(id="o2", text="")]
            ),
        )
        assert [h.label for h in handles_of(event)] == ["Fight", "Option 2"]

    def test_battle_handles(self) -> None:
        handles = handles_of(_battle())
        assert [(h.id, h.kind) for h in handles] == [("win", "win"), ("lose", "lose")]

    def test_end_has_no_handles(self) -> None:
        assert handles_of(StoryEvent(id="e", content=EndContent())) == []


class TestWithSlotTarget:
    """Tests for with_slot_target."""

    def test_sets_story_next(self) -> None:
        event = StoryEvent(id="s", content=StoryContent(text="t"))
        updated = with_slot_target(event, "next", "x")

        assert updated is not None
        assert targets_of(updated) == ["x"]
        assert targets_of(event) == []

    def test_sets_only_lose_branch(self) -> None:
        updated = with_slot_target(_battle(win="w"), "lose", "l")
        assert updated is not None
        assert isinstance(updated.content, BattleContent)
        assert updated.content.win.next_event_id == "w"
        assert updated.content.lose.next_event_id == "l"

    def test_handle_of_other_kind_rejected(self) -> None:
        event = StoryEvent(id="s", content=StoryContent())
        assert with_slot_target(event, "win", "x") is None

    def test_unknown_option_rejected(self, abc_storyline: Storyline) -> None:
        event = abc_storyline.get_event("B")
        assert event is not None
        assert with_slot_target(event, "opt:missing", "A") is None

    def test_end_rejects_everything(self) -> None:
        assert with_slot_target(StoryEvent(id="e", content=EndContent()), "next", "x") is None


class TestDefaults:
    """Tests for default content, options, and events."""

    @pytest.mark.parametrize("kind", ["decision", "battle", "story", "end"])
    def test_default_content_kind(self, kind: str) -> None:
        assert default_content(kind).type == kind  # type: ignore[arg-type]

    def test_default_battle_has_placeholder_enemy(self) -> None:
        content = default_content("battle")
        assert isinstance(content, BattleContent)
        assert content.enemy_id == ""
        assert content.enemy["name"] == "Enemy"
        assert content.win.next_event_id == ""

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown content kind"):
            default_content("cutscene")  # type: ignore[arg-type]

    def test_default_options_get_distinct_ids(self) -> None:
        assert default_option().id != default_option().id

    def test_default_event(self) -> None:
        event = default_event()
        assert event.id
        assert event.name == ""
        assert event.node_type == "middle"
        assert event.action_points == 0
        assert isinstance(event.content, DecisionContent)
        assert event.content.options == []


class TestNormalizeStoryline:
    """Tests for normalize_storyline."""

    def test_fills_missing_fields(self) -> None:
        raw = {
            "id": "s",
            "name": "Loaded",
            "start_event_id": None,
            "events": [
                {"id": "a", "name": None, "content": {"type": "story", "next_event_id": None}},
                {"id": "b", "content": {"type": "battle", "win": None}},
            ],
        }
        storyline = normalize_storyline(raw)

        assert storyline.start_event_id == ""
        a, b = storyline.events
        assert a.name == ""
        assert a.action_points == 0
        assert isinstance(a.content, StoryContent)
        assert a.content.next_event_id == ""
        assert a.content.rewards == []
        assert isinstance(b.content, BattleContent)
        assert b.content.win.next_event_id == ""
        assert b.content.enemy["name"] == "Enemy"

    def test_assigns_missing_option_ids(self) -> None:
        raw = {
            "id": "s",
            "events": [
                {
                    "id": "d",
                    "content": {
                        "type": "decision",
                        "options": [{"text": "a"}, {"id": None, "text": "b"}],
                    },
                }
            ],
        }
        storyline = normalize_storyline(raw)
        content = storyline.events[0].content
        assert isinstance(content, DecisionContent)
        ids = [o.id for o in content.options]
        assert all(ids)
        assert len(set(ids)) == 2

    def test_duplicate_option_ids_regenerated(self) -> None:
        raw = {
            "id": "s",
            "events": [
                {
                    "id": "d",
                    "content": {
                        "type": "decision",
                        "options": [{"id": "x", "text": "a"}, {"id": "x", "text": "b"}],
                    },
                }
            ],
        }
        content = normalize_storyline(raw).events[0].content
        assert isinstance(content, DecisionContent)
        assert content.options[0].id == "x"
        assert content.options[1].id != "x"

    def test_existing_ids_untouched(self, abc_storyline: Storyline) -> None:
        normalized = normalize_storyline(abc_storyline)
        assert normalized == abc_storyline
        assert normalized is not abc_storyline
