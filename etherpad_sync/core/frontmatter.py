"""
Frontmatter handling: the YAML metadata block embedded at the start of a
note.

A note with frontmatter looks like:

```
---
etherpad_id: My note
---
Body text
```

The block must begin on the first line and is terminated by the next
delimiter line. Anything which doesn't parse as a YAML mapping is treated as
if there was no frontmatter at all, so content is never discarded due to a
parse failure.
"""
from __future__ import annotations

from typing import Any

import yaml

__all__ = [
    "DELIMITER",
    "POSITION_KEY",
    "Frontmatter",
    "extract_frontmatter",
    "body_without_frontmatter",
    "serialize_frontmatter",
    "merge_frontmatter",
    "compose_note",
]

DELIMITER = "---"
"""
Line which opens and closes the frontmatter block.
"""

POSITION_KEY = "position"
"""
Line range bookkeeping added by editors which index frontmatter; never
persisted.
"""

type Frontmatter = dict[str, Any]


def extract_frontmatter(raw: str) -> Frontmatter | None:
    """
    Get frontmatter from raw note content, or `None` if the note has no
    frontmatter or it's malformed. A new mapping is returned on each call.
    """
    split = _split(raw)
    return split[0] if split else None


def body_without_frontmatter(raw: str) -> str:
    """
    Get note content following the frontmatter block, or the content
    unchanged if there is no frontmatter.
    """
    split = _split(raw)
    return split[1] if split else raw


def serialize_frontmatter(meta: Frontmatter) -> str:
    """
    Render frontmatter block including delimiters and trailing newline.
    """
    meta = {k: v for k, v in meta.items() if k != POSITION_KEY}
    meta_yaml = yaml.safe_dump(
        meta, default_flow_style=False, sort_keys=False, allow_unicode=True
    )
    return f"{DELIMITER}\n{meta_yaml}{DELIMITER}\n"


def merge_frontmatter(
    existing: Frontmatter | None, updates: Frontmatter
) -> Frontmatter:
    """
    Shallow merge of updates into existing frontmatter, updates taking
    precedence. Neither input is modified.
    """
    return {**(existing or {}), **updates}


def compose_note(meta: Frontmatter, body: str) -> str:
    """
    Get raw note content from frontmatter and body.
    """
    return serialize_frontmatter(meta) + body


def _split(raw: str) -> tuple[Frontmatter, str] | None:
    """
    Split raw content into parsed frontmatter and body.
    """
    lines = raw.splitlines(keepends=True)

    if not lines or lines[0].rstrip() != DELIMITER:
        return None

    # find closing delimiter
    end = next(
        (i for i in range(1, len(lines)) if lines[i].rstrip() == DELIMITER),
        None,
    )
    if end is None:
        return None

    try:
        meta = yaml.safe_load("".join(lines[1:end]))
    except yaml.YAMLError:
        return None

    # empty block
    if meta is None:
        meta = {}

    if not isinstance(meta, dict):
        return None

    return meta, "".join(lines[end + 1 :])
