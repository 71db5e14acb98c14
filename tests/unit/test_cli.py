"""Test CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from storyweave import __version__
from storyweave.cli import app
from storyweave.models.storyline import BattleContent, DecisionContent, StoryEvent, Storyline
from storyweave.storage import JsonStorylineRepository

if TYPE_CHECKING:
    from pathlib import Path

    from click.testing import Result

runner = CliRunner()


def _output(result: Result) -> str:
    """Command output with Rich line wrapping collapsed."""
    return " ".join(result.stdout.split())


@pytest.fixture
def project(tmp_path: Path, abc_storyline: Storyline) -> Path:
    """Initialized project holding the three-event storyline."""
    result = runner.invoke(app, ["init", "saga", "--path", str(tmp_path)])
    assert result.exit_code == 0
    project_path = tmp_path / "saga"
    JsonStorylineRepository(project_path / "data").save(abc_storyline)
    return project_path


def _load(project: Path, storyline_id: str = "sl-1") -> Storyline:
    storyline = JsonStorylineRepository(project / "data").load(storyline_id)
    assert storyline is not None
    return storyline


def test_version_command() -> None:
    """Test sw version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"v{__version__}" in _output(result)


def test_no_args_shows_help() -> None:
    """Test that no arguments shows help."""
    result = runner.invoke(app, [])
    assert result.exit_code in (0, 2)
    assert "Storyweave" in result.output


# --- Init Command Tests ---


def test_init_creates_project(tmp_path: Path) -> None:
    """Test sw init creates project structure."""
    result = runner.invoke(app, ["init", "my_story", "--path", str(tmp_path)])

    assert result.exit_code == 0
    assert "Created project" in _output(result)
    project_path = tmp_path / "my_story"
    assert (project_path / "storyweave.yaml").exists()
    assert (project_path / "data").is_dir()
    assert "name: my_story" in (project_path / "storyweave.yaml").read_text()


def test_init_existing_directory_fails(tmp_path: Path) -> None:
    """Test sw init refuses to overwrite."""
    (tmp_path / "taken").mkdir()
    result = runner.invoke(app, ["init", "taken", "--path", str(tmp_path)])
    assert result.exit_code == 1
    assert "already exists" in _output(result)


# --- Storyline Commands ---


class TestListAndNew:
    """Tests for sw list and sw new."""

    def test_list(self, project: Path) -> None:
        result = runner.invoke(app, ["list", "--project", str(project)])
        assert result.exit_code == 0
        assert "sl-1" in _output(result)
        assert "Three step" in _output(result)

    def test_list_empty(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["list", "--project", str(tmp_path)])
        assert result.exit_code == 0
        assert "No storylines yet" in _output(result)

    def test_new_creates_valid_storyline(self, project: Path) -> None:
        result = runner.invoke(app, ["new", "Side quest", "--kind", "end", "-p", str(project)])

        assert result.exit_code == 0
        assert "Created storyline" in _output(result)
        items = JsonStorylineRepository(project / "data").list()
        created = next(i for i in items if i.name == "Side quest")
        storyline = _load(project, created.id)
        assert len(storyline.events) == 1
        assert storyline.start_event_id == storyline.events[0].id
        assert storyline.events[0].node_type == "start"

    def test_new_unknown_kind(self, project: Path) -> None:
        result = runner.invoke(app, ["new", "X", "--kind", "cutscene", "-p", str(project)])
        assert result.exit_code == 1
        assert "Unknown kind" in _output(result)


class TestInspection:
    """Tests for show, validate, layout, edges, diagram, status."""

    def test_show(self, project: Path) -> None:
        result = runner.invoke(app, ["show", "sl-1", "-p", str(project)])
        assert result.exit_code == 0
        assert "Crossroads" in _output(result)
        assert "start" in _output(result)

    def test_show_missing_storyline(self, project: Path) -> None:
        result = runner.invoke(app, ["show", "nope", "-p", str(project)])
        assert result.exit_code == 1
        assert "not found" in _output(result)

    def test_validate_ok(self, project: Path) -> None:
        result = runner.invoke(app, ["validate", "sl-1", "-p", str(project)])
        assert result.exit_code == 0
        assert "passed" in _output(result)

    def test_validate_blocking_errors(self, project: Path, abc_storyline: Storyline) -> None:
        broken = abc_storyline.model_copy(update={"id": "sl-bad", "start_event_id": "ghost"})
        JsonStorylineRepository(project / "data").save(broken)

        result = runner.invoke(app, ["validate", "sl-bad", "-p", str(project)])

        assert result.exit_code == 1
        assert "ghost" in _output(result)
        assert "failed" in _output(result)

    def test_layout(self, project: Path) -> None:
        result = runner.invoke(app, ["layout", "sl-1", "-p", str(project)])
        assert result.exit_code == 0
        assert "488" in _output(result)

    def test_edges(self, project: Path) -> None:
        result = runner.invoke(app, ["edges", "sl-1", "-p", str(project)])
        assert result.exit_code == 0
        assert "opt:opt1" in _output(result)

    def test_diagram(self, project: Path) -> None:
        result = runner.invoke(app, ["diagram", "sl-1", "-p", str(project)])
        assert result.exit_code == 0
        assert "graph TD" in _output(result)
        assert "e_A" in _output(result)

    def test_status(self, project: Path) -> None:
        result = runner.invoke(app, ["status", "-p", str(project)])
        assert result.exit_code == 0
        assert "saga" in _output(result)
        assert "ok" in _output(result)

    def test_bad_config(self, project: Path) -> None:
        (project / "storyweave.yaml").write_text("layout: [1, 2\n")
        result = runner.invoke(app, ["list", "-p", str(project)])
        assert result.exit_code == 1
        assert "Error" in _output(result)


class TestEditing:
    """Tests for editing commands that save the storyline."""

    def test_add_event(self, project: Path) -> None:
        result = runner.invoke(
            app, ["add-event", "sl-1", "--kind", "battle", "--name", "Ambush", "-p", str(project)]
        )
        assert result.exit_code == 0
        storyline = _load(project)
        assert storyline.events[-1].name == "Ambush"
        assert storyline.events[-1].content.type == "battle"
        # new event is unreachable, which warns but still saves
        assert "unreachable" in _output(result)

    def test_delete_event_with_yes(self, project: Path) -> None:
        result = runner.invoke(app, ["delete-event", "sl-1", "C", "--yes", "-p", str(project)])

        assert result.exit_code == 0
        storyline = _load(project)
        assert storyline.event_ids() == ["A", "B"]
        content = storyline.get_event("B").content  # type: ignore[union-attr]
        assert isinstance(content, DecisionContent)
        assert content.options[0].next_event_id == ""

    def test_delete_event_declined(self, project: Path) -> None:
        result = runner.invoke(app, ["delete-event", "sl-1", "C", "-p", str(project)], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in _output(result)
        assert _load(project).event_ids() == ["A", "B", "C"]

    def test_delete_unknown_event(self, project: Path) -> None:
        result = runner.invoke(app, ["delete-event", "sl-1", "Z", "--yes", "-p", str(project)])
        assert result.exit_code == 0
        assert "Nothing to delete" in _output(result)

    def test_delete_only_event_blocked(self, project: Path) -> None:
        single = Storyline(id="one", name="Solo", start_event_id="x", events=[StoryEvent(id="x")])
        JsonStorylineRepository(project / "data").save(single)

        result = runner.invoke(app, ["delete-event", "one", "x", "--yes", "-p", str(project)])

        assert result.exit_code == 1
        assert "Not saved" in _output(result)
        assert _load(project, "one").event_ids() == ["x"]

    def test_connect(self, project: Path) -> None:
        result = runner.invoke(app, ["connect", "sl-1", "B", "opt:opt2", "A", "-p", str(project)])
        assert result.exit_code == 0
        content = _load(project).get_event("B").content  # type: ignore[union-attr]
        assert isinstance(content, DecisionContent)
        assert content.options[1].next_event_id == "A"

    def test_connect_rejected(self, project: Path) -> None:
        result = runner.invoke(app, ["connect", "sl-1", "A", "next", "ghost", "-p", str(project)])
        assert result.exit_code == 1
        assert "Rejected" in _output(result)

    def test_disconnect(self, project: Path) -> None:
        result = runner.invoke(app, ["disconnect", "sl-1", "A", "next", "-p", str(project)])
        assert result.exit_code == 0
        assert _load(project).get_event("A").content.next_event_id == ""  # type: ignore[union-attr]


class TestAssignEnemy:
    """Tests for sw assign-enemy."""

    @pytest.fixture
    def battle_project(self, project: Path, abc_storyline: Storyline) -> Path:
        battle = StoryEvent(id="D", name="Ambush", content=BattleContent())
        storyline = abc_storyline.model_copy(update={"events": [*abc_storyline.events, battle]})
        JsonStorylineRepository(project / "data").save(storyline)
        catalogs = {
            "enemy": [
                {
                    "id": "bandit",
                    "name": "Bandit",
                    "internal": {"id": "i1", "level": 1, "exp": 0},
                    "attack_skill": {"id": "a9", "level": 2, "exp": 10},
                    "defense_skill": None,
                    "traits": ["t1", "t9"],
                },
            ],
            "internal": [{"id": "i1", "name": "Iron Shirt"}],
            "trait": [{"id": "t1", "name": "Swift"}],
        }
        (project / "data" / "catalogs.json").write_text(json.dumps(catalogs))
        return project

    def test_assign_snapshots_enemy(self, battle_project: Path) -> None:
        result = runner.invoke(
            app, ["assign-enemy", "sl-1", "D", "bandit", "-p", str(battle_project)]
        )

        assert result.exit_code == 0
        assert "Bandit" in _output(result)
        assert "Internal: Iron Shirt" in _output(result)
        assert "Attack Skill: Unnamed attack skill" in _output(result)
        assert "Defense Skill: None" in _output(result)
        assert "Swift, Unnamed trait" in _output(result)
        content = _load(battle_project).get_event("D").content  # type: ignore[union-attr]
        assert isinstance(content, BattleContent)
        assert content.enemy_id == "bandit"
        assert content.enemy["name"] == "Bandit"
        assert "id" not in content.enemy

    def test_unknown_enemy(self, battle_project: Path) -> None:
        result = runner.invoke(
            app, ["assign-enemy", "sl-1", "D", "dragon", "-p", str(battle_project)]
        )
        assert result.exit_code == 1
        assert "dragon" in _output(result)

    def test_not_a_battle(self, battle_project: Path) -> None:
        result = runner.invoke(
            app, ["assign-enemy", "sl-1", "B", "bandit", "-p", str(battle_project)]
        )
        assert result.exit_code == 1
        assert "expected battle" in _output(result)
