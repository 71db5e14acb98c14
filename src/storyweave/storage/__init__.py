"""Storyline persistence backends."""

from storyweave.storage.base import InMemoryStorylineRepository, StorageError, StorylineRepository
from storyweave.storage.json_store import JsonStorylineRepository

__all__ = [
    "InMemoryStorylineRepository",
    "JsonStorylineRepository",
    "StorageError",
    "StorylineRepository",
]
