"""Reasoning placement for providers with extended thinking enabled.

With thinking on, an assistant turn that issues tool calls has to open with
a reasoning block. Runs independently of repair, since a transcript can pass
adjacency validation and still break this rule.
"""

from __future__ import annotations

from loguru import logger

from turnguard.session.messages import Conversation, Reasoning, Role, Turn

PLACEHOLDER_REASONING = "[Planning tool usage]"


def needs_reasoning_first(t: Turn) -> bool:
    if t.role != Role.ASSISTANT or not t.has_tool_calls:
        return False
    return not isinstance(t.parts[0], Reasoning)


def ensure_reasoning_first(
    conversation: Conversation,
    placeholder: str | None = PLACEHOLDER_REASONING,
) -> Conversation:
    """Move reasoning to the front of every call-bearing assistant turn.

    Reasoning parts keep their relative order, as do the remaining parts.
    When such a turn has no reasoning at all and ``placeholder`` is set, a
    placeholder reasoning part is inserted instead.

    Returns the input object unchanged when no turn needs fixing.
    """
    changed = False
    turns: list[Turn] = []

    for index, t in enumerate(conversation.turns):
        if not needs_reasoning_first(t):
            turns.append(t)
            continue

        reasoning = [p for p in t.parts if isinstance(p, Reasoning)]
        rest = [p for p in t.parts if not isinstance(p, Reasoning)]
        if reasoning:
            logger.debug(f"Turn {index}: moving {len(reasoning)} reasoning part(s) to the front")
            turns.append(Turn(role=t.role, parts=tuple(reasoning + rest)))
            changed = True
        elif placeholder:
            logger.debug(f"Turn {index}: inserting placeholder reasoning before tool calls")
            turns.append(Turn(role=t.role, parts=(Reasoning(text=placeholder), *rest)))
            changed = True
        else:
            turns.append(t)

    if not changed:
        return conversation
    return Conversation(turns=tuple(turns))
