"""Tool call ID sanitization for provider compatibility.

Rewrites tool call IDs across a transcript to satisfy provider-specific
constraints (alphanumeric-only, fixed length) while keeping every call and
its result pointing at the same new ID and preventing collisions.
"""

import hashlib
import re
from dataclasses import replace
from typing import Literal

from turnguard.session.messages import Conversation, ToolCall, ToolResult, Turn

IdMode = Literal["strict", "strict9"]

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

STRICT_MAX_LEN = 40
STRICT9_LEN = 9

# Used when nothing alphanumeric survives cleaning
EMPTY_STRICT_ID = "toolcallid"
EMPTY_STRICT9_ID = "toolcall0"


def sanitize_tool_call_id(raw_id: str, mode: IdMode = "strict") -> str:
    """Sanitize a single tool call ID.

    Args:
        raw_id: The original tool call ID.
        mode: "strict" (alphanumeric, at most 40 chars) or
              "strict9" (exactly 9 alphanumeric chars).

    Returns:
        A sanitized ID string.
    """
    cleaned = _NON_ALNUM.sub("", raw_id or "")

    if mode == "strict9":
        if len(cleaned) == STRICT9_LEN:
            return cleaned
        if len(cleaned) > STRICT9_LEN:
            return cleaned[:STRICT9_LEN]
        if cleaned:
            # Too short: hash for a deterministic 9-char id
            return hashlib.sha1(raw_id.encode()).hexdigest()[:STRICT9_LEN]
        return EMPTY_STRICT9_ID

    if not cleaned:
        return EMPTY_STRICT_ID
    return cleaned[:STRICT_MAX_LEN]


def _make_unique(base: str, used: set[str], mode: IdMode = "strict") -> str:
    """Generate an ID that doesn't collide with the used set."""
    if base not in used:
        return base

    max_len = STRICT9_LEN if mode == "strict9" else STRICT_MAX_LEN
    h = hashlib.sha1(base.encode()).hexdigest()[:8]

    if mode == "strict9":
        candidate = (base[: max_len - len(h)] + h)[:max_len]
    else:
        candidate = (base + h)[:max_len]
    if candidate not in used:
        return candidate

    counter = 2
    while True:
        suffix = str(counter)
        candidate = base[: max_len - len(suffix)] + suffix
        if candidate not in used:
            return candidate
        counter += 1


def build_id_map(conversation: Conversation, mode: IdMode = "strict") -> dict[str, str]:
    """Map every call/result ID in the transcript to its sanitized form.

    IDs are assigned in transcript order, so the mapping is stable for a
    given transcript.
    """
    id_map: dict[str, str] = {}
    used: set[str] = set()

    for part in conversation.parts():
        if isinstance(part, ToolCall):
            raw = part.id
        elif isinstance(part, ToolResult):
            raw = part.tool_call_id
        else:
            continue
        if raw in id_map:
            continue
        sanitized = _make_unique(sanitize_tool_call_id(raw, mode), used, mode)
        used.add(sanitized)
        id_map[raw] = sanitized

    return id_map


def sanitize_tool_call_ids(conversation: Conversation, mode: IdMode = "strict") -> Conversation:
    """Sanitize all tool call IDs in a transcript.

    Returns the original conversation if no ID needed rewriting, otherwise
    a new one with every call and result reference rewritten.
    """
    id_map = build_id_map(conversation, mode)
    if all(old == new for old, new in id_map.items()):
        return conversation

    turns = []
    for t in conversation.turns:
        parts = []
        for part in t.parts:
            if isinstance(part, ToolCall):
                part = replace(part, id=id_map[part.id])
            elif isinstance(part, ToolResult):
                part = replace(part, tool_call_id=id_map[part.tool_call_id])
            parts.append(part)
        turns.append(Turn(role=t.role, parts=tuple(parts)))

    return Conversation(turns=tuple(turns))
