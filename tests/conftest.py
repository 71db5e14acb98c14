"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from storyweave.models.storyline import (
    DecisionContent,
    EndContent,
    StoryContent,
    StoryEvent,
    Storyline,
    StoryOption,
)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of test runs."""
    monkeypatch.delenv("STORYWEAVE_DATA_DIR", raising=False)
    monkeypatch.delenv("STORYWEAVE_PROJECT", raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def abc_storyline() -> Storyline:
    """A(start, story -> B), B(decision, opt1 -> C, opt2 -> ""), C(end)."""
    return Storyline(
        id="sl-1",
        name="Three step",
        start_event_id="A",
        events=[
            StoryEvent(
                id="A",
                name="Arrival",
                node_type="start",
                content=StoryContent(text="You arrive.", next_event_id="B"),
            ),
            StoryEvent(
                id="B",
                name="Crossroads",
                content=DecisionContent(
                    text="Which way?",
                    options=[
                        StoryOption(id="opt1", text="Left", next_event_id="C"),
                        StoryOption(id="opt2", text="Right", next_event_id=""),
                    ],
                ),
            ),
            StoryEvent(id="C", name="Ending", node_type="end", content=EndContent(text="Fin.")),
        ],
    )
