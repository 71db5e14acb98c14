"""Graph package - storyline graph engine.

Everything here is a pure function of a storyline snapshot: transition
slots, validation, layered layout, edge derivation, and the mutations that
produce the next snapshot.
"""

from storyweave.graph.content import (
    HandleItem,
    TransitionSlot,
    default_content,
    default_event,
    default_option,
    handles_of,
    normalize_storyline,
    slots_of,
    targets_of,
)
from storyweave.graph.edges import (
    DiagramEdge,
    apply_connect,
    apply_disconnect,
    apply_edges_delete,
    derive_edges,
)
from storyweave.graph.errors import (
    CatalogEntryNotFoundError,
    ContentKindError,
    DeletionNotConfirmedError,
    EventNotFoundError,
    OptionNotFoundError,
    StorylineError,
)
from storyweave.graph.layout import (
    DEFAULT_LAYOUT,
    LayoutConfig,
    Position,
    compute_depths,
    compute_levels,
    layout_key,
    layout_storyline,
)
from storyweave.graph.mutations import (
    add_event,
    add_option,
    assign_enemy,
    delete_event,
    remove_option,
    rename_storyline,
    set_branch_rewards,
    set_content_kind,
    set_start_event,
    set_story_rewards,
    update_event,
    update_option,
)
from storyweave.graph.validation import (
    InvalidReference,
    StorylineValidation,
    ValidationCheck,
    ValidationReport,
    reachable_event_ids,
    validate_storyline,
)

__all__ = [
    "DEFAULT_LAYOUT",
    "CatalogEntryNotFoundError",
    "ContentKindError",
    "DeletionNotConfirmedError",
    "DiagramEdge",
    "EventNotFoundError",
    "HandleItem",
    "InvalidReference",
    "LayoutConfig",
    "OptionNotFoundError",
    "Position",
    "StorylineError",
    "StorylineValidation",
    "TransitionSlot",
    "ValidationCheck",
    "ValidationReport",
    "add_event",
    "add_option",
    "apply_connect",
    "apply_disconnect",
    "apply_edges_delete",
    "assign_enemy",
    "compute_depths",
    "compute_levels",
    "default_content",
    "default_event",
    "default_option",
    "delete_event",
    "derive_edges",
    "handles_of",
    "layout_key",
    "layout_storyline",
    "normalize_storyline",
    "reachable_event_ids",
    "remove_option",
    "rename_storyline",
    "set_branch_rewards",
    "set_content_kind",
    "set_start_event",
    "set_story_rewards",
    "slots_of",
    "targets_of",
    "update_event",
    "update_option",
    "validate_storyline",
]
