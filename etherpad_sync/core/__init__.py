"""
This module implements synchronization of notes with Etherpad pads: the
frontmatter codec, HTML to Markdown conversion, the Etherpad API gateway and
the sync operations themselves.
"""

from pyrollup import rollup

from . import (
    config,
    exceptions,
    frontmatter,
    gateway,
    host,
    markup,
    sync,
)
from .config import *  # noqa
from .exceptions import *  # noqa
from .frontmatter import *  # noqa
from .gateway import *  # noqa
from .host import *  # noqa
from .markup import *  # noqa
from .sync import *  # noqa

__all__ = rollup(
    sync,
    frontmatter,
    markup,
    gateway,
    host,
    config,
    exceptions,
)

__canonical_children__ = [
    "sync",
    "frontmatter",
    "markup",
    "gateway",
    "host",
    "config",
    "exceptions",
]
