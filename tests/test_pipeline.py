"""Tests for turnguard.session.pipeline: outbound transcript preparation."""

from __future__ import annotations

import pytest
from loguru import logger

from turnguard.config.schema import Config, DiagnosticsConfig, RepairConfig
from turnguard.session.errors import StructuralError
from turnguard.session.messages import Conversation, Reasoning, Role, Text, ToolCall, ToolResult, Turn
from turnguard.session.pipeline import prepare_conversation, prepare_records


# ── Helpers ──────────────────────────────────────────────────


def _quiet(**repair_kwargs) -> Config:
    return Config(
        repair=RepairConfig(**repair_kwargs),
        diagnostics=DiagnosticsConfig(log_structure=False),
    )


def _valid() -> Conversation:
    return Conversation.of(
        Turn(Role.USER, [Text("balance?")]),
        Turn(Role.ASSISTANT, [ToolCall("call_1", "get_balance")]),
        Turn(Role.TOOL, [ToolResult("call_1", "get_balance", "1.5 SOL")]),
        Turn(Role.ASSISTANT, [Text("You hold 1.5 SOL")]),
    )


def _mixed() -> Conversation:
    return Conversation.of(
        Turn(Role.USER, [Text("balance?")]),
        Turn(Role.ASSISTANT, [
            Text("Let me check"),
            ToolCall("call_1", "get_balance"),
            ToolResult("call_1", "get_balance", "1.5 SOL"),
            Text("You hold 1.5 SOL"),
        ]),
    )


@pytest.fixture
def captured_logs():
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(handler_id)


# ---------------------------------------------------------------------------
# Valid transcripts
# ---------------------------------------------------------------------------

class TestValidTranscript:
    def test_passes_through_untouched(self):
        conv = _valid()
        prepared = prepare_conversation(conv, _quiet())
        assert prepared.conversation is conv
        assert prepared.repaired is False
        assert prepared.initial.valid and prepared.final.valid

    def test_no_warning_logged(self, captured_logs):
        prepare_conversation(_valid(), _quiet())
        assert not any(m.startswith("WARNING") for m in captured_logs)


# ---------------------------------------------------------------------------
# Repair path
# ---------------------------------------------------------------------------

class TestRepairPath:
    def test_repairs_mixed_turn(self):
        conv = _mixed()
        prepared = prepare_conversation(conv, _quiet())
        assert prepared.repaired is True
        assert not prepared.initial.valid
        assert prepared.final.valid
        assert [t.role for t in prepared.conversation] == [
            Role.USER, Role.ASSISTANT, Role.TOOL, Role.ASSISTANT,
        ]
        # stored original untouched
        assert conv == _mixed()

    def test_injected_sink_receives_dumps(self):
        dumps: list[str] = []
        prepare_conversation(_mixed(), _quiet(), sink=dumps.append)
        assert [d.split(" (")[0] for d in dumps] == ["Before repair", "After repair"]

    def test_logs_warning_and_structure(self, captured_logs):
        prepare_conversation(_mixed(), Config())
        assert any(m.startswith("WARNING") and "failed validation" in m for m in captured_logs)
        assert any(m.startswith("DEBUG") and "After repair" in m for m in captured_logs)

    def test_detailed_dump_of_stored_transcript(self):
        dumps: list[str] = []
        config = Config(diagnostics=DiagnosticsConfig(detailed=True))
        prepare_conversation(_mixed(), config, sink=dumps.append)
        assert dumps[0].startswith("Stored transcript")
        assert "tool-call: get_balance (id: call_1)" in dumps[0]

    def test_unrepairable_raises_and_logs(self, captured_logs):
        conv = Conversation.of(Turn(Role.ASSISTANT, [ToolCall("lost", "get_balance")]))
        with pytest.raises(StructuralError) as exc_info:
            prepare_conversation(conv, _quiet())
        assert exc_info.value.tool_call_ids == ["lost"]
        assert any(m.startswith("ERROR") and "lost" in m for m in captured_logs)


# ---------------------------------------------------------------------------
# Compatibility steps
# ---------------------------------------------------------------------------

class TestCompatSteps:
    def test_reasoning_first_applied_to_valid_transcript(self):
        prepared = prepare_conversation(_valid(), _quiet(reasoning_first=True))
        assert prepared.repaired is False
        assert isinstance(prepared.conversation[1].parts[0], Reasoning)
        assert prepared.final.valid

    def test_tool_call_ids_sanitized_after_repair(self):
        prepared = prepare_conversation(_mixed(), _quiet(tool_call_id_mode="strict9"))
        assert prepared.conversation[1].tool_call_ids == [prepared.conversation[2].tool_result_ids[0]]
        assert len(prepared.conversation[1].tool_call_ids[0]) == 9
        assert prepared.final.valid


def test_prepare_records():
    records = [
        {"role": "user", "content": "balance?"},
        {"role": "assistant", "parts": [
            {"type": "tool-call", "toolCallId": "c1", "toolName": "get_balance", "args": {}},
            {"type": "tool-result", "toolCallId": "c1", "toolName": "get_balance", "result": "1.5"},
        ]},
    ]
    prepared = prepare_records(records, _quiet())
    assert prepared.repaired is True
    assert [t.role for t in prepared.conversation] == [Role.USER, Role.ASSISTANT, Role.TOOL]
    assert records[1]["parts"][1]["type"] == "tool-result"
