"""taskdeck: task review queue on top of an Anki collection."""

from taskdeck.consts import VERSION

__version__ = VERSION
