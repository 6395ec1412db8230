"""
etherpad-sync: keep Markdown notes in sync with Etherpad pads.
"""

from pyrollup import rollup

from . import core
from .core import *  # noqa

__all__ = rollup(core)

__canonical_children__ = [
    "core",
]
