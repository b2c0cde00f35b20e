"""Conversation data model: turns of ordered, tagged content parts.

Every value here is immutable. Transformations elsewhere in the package
build new values instead of editing these in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Sequence, Union


class Role(str, Enum):
    """Role of a turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    # Result-carrier role: the only role allowed to hold tool results
    TOOL = "tool"


@dataclass(frozen=True)
class Text:
    text: str

    kind = "text"


@dataclass(frozen=True)
class Reasoning:
    """Provider-internal scratch content. The payload is opaque."""

    text: str
    signature: str | None = None

    kind = "reasoning"


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    # Payloads may be dicts; they take part in equality but not in hashing
    arguments: Any = field(default_factory=dict, hash=False)

    kind = "tool-call"

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ToolCall requires a non-empty id")


@dataclass(frozen=True)
class ToolResult:
    tool_call_id: str
    name: str
    payload: Any = field(default=None, hash=False)
    is_error: bool = False

    kind = "tool-result"

    def __post_init__(self) -> None:
        if not self.tool_call_id:
            raise ValueError("ToolResult requires a non-empty tool_call_id")


ContentPart = Union[Text, Reasoning, ToolCall, ToolResult]

PART_TYPES: tuple[type, ...] = (Text, Reasoning, ToolCall, ToolResult)


def is_result(part: ContentPart) -> bool:
    return isinstance(part, ToolResult)


@dataclass(frozen=True)
class Turn:
    """One role-tagged group of content parts."""

    role: Role
    parts: tuple[ContentPart, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))
        parts = tuple(self.parts)
        for part in parts:
            if not isinstance(part, PART_TYPES):
                raise TypeError(f"Unsupported content part: {type(part).__name__}")
        object.__setattr__(self, "parts", parts)

    @property
    def tool_calls(self) -> list[ToolCall]:
        return [p for p in self.parts if isinstance(p, ToolCall)]

    @property
    def tool_results(self) -> list[ToolResult]:
        return [p for p in self.parts if isinstance(p, ToolResult)]

    @property
    def tool_call_ids(self) -> list[str]:
        return [p.id for p in self.tool_calls]

    @property
    def tool_result_ids(self) -> list[str]:
        return [p.tool_call_id for p in self.tool_results]

    @property
    def has_tool_calls(self) -> bool:
        return any(isinstance(p, ToolCall) for p in self.parts)

    @property
    def has_tool_results(self) -> bool:
        return any(isinstance(p, ToolResult) for p in self.parts)

    @property
    def is_result_only(self) -> bool:
        """True for a non-empty turn made only of tool results."""
        return bool(self.parts) and all(isinstance(p, ToolResult) for p in self.parts)

    def part_kinds(self) -> list[str]:
        return [p.kind for p in self.parts]


@dataclass(frozen=True)
class Conversation:
    """An ordered, chronological transcript of turns."""

    turns: tuple[Turn, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "turns", tuple(self.turns))

    @classmethod
    def of(cls, *turns: Turn) -> "Conversation":
        return cls(turns)

    def __len__(self) -> int:
        return len(self.turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)

    def __getitem__(self, index: int) -> Turn:
        return self.turns[index]

    def parts(self) -> list[ContentPart]:
        """All content parts in transcript order."""
        return [part for turn in self.turns for part in turn.parts]


def turn(role: Role | str, parts: Sequence[ContentPart]) -> Turn:
    """Shorthand constructor used by callers building transcripts by hand."""
    return Turn(role=Role(role), parts=tuple(parts))
