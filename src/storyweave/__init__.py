"""Storyweave: branching storyline graph engine."""

__version__ = "0.1.0"
