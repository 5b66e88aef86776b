"""
Tests for the terminal front end.
"""

import asyncio

import pytest

from ..cli import TerminalView, handle_line, main
from ..engine_core.board import BoardColumn
from ..engine_core.state import GameStatus, ScenarioMode, Sender, SimulationState
from ..session import GameLoop
from .conftest import ScriptedTransport, ok


def started(*turns):
    loop = GameLoop(ScriptedTransport(ok(), *turns))
    asyncio.run(loop.start(ScenarioMode.RANDOM))
    view = TerminalView(loop.board, feedback_delay=0)
    view.update(loop.state)
    return loop, view


class TestHandleLine:
    def test_index_commands_toggle(self, capsys):
        loop, view = started()
        asyncio.run(handle_line(loop, view, ":c 1"))
        asyncio.run(handle_line(loop, view, ":a 2"))
        asyncio.run(handle_line(loop, view, ":m 5"))

        assert loop.board.selection.condition == "Sepsis"
        assert loop.board.selection.actions == ("IVF",)
        assert loop.board.selection.monitoring == ("LOC",)
        assert "[x] 1. Sepsis" in capsys.readouterr().out

    def test_out_of_range_index(self, capsys):
        loop, view = started()
        asyncio.run(handle_line(loop, view, ":a 9"))
        assert "No such option" in capsys.readouterr().out

    def test_free_text_is_sent(self):
        loop, view = started(ok(narrative="Pupils equal and reactive."))
        asyncio.run(handle_line(loop, view, "Check pupils"))
        assert loop.transport.conversation.sent == ["Check pupils"]

    def test_submit_command(self):
        loop, view = started(ok(feedback="Correct."))
        for command in [":c 1", ":a 1", ":a 3", ":m 2", ":m 3"]:
            asyncio.run(handle_line(loop, view, command))
        asyncio.run(handle_line(loop, view, ":submit"))
        assert loop.state.last_message.text == "Correct."


class TestTerminalView:
    def test_flush_prints_new_entries_once(self, capsys):
        loop, view = started(ok(narrative="HR 124.", feedback="Consider fluids."))
        asyncio.run(view.flush())
        first = capsys.readouterr().out
        assert "[PATIENT ROOM]" in first
        assert "HR 118" in first

        asyncio.run(loop.send_text("Give fluids"))
        view.update(loop.state)
        asyncio.run(view.flush())
        second = capsys.readouterr().out
        assert second.index("HR 124.") < second.index("Consider fluids.")
        assert "Give fluids" not in second

    def test_vitals_alarms(self, capsys):
        loop, view = started()
        # Opening vitals: HR 118, T 38.9
        assert view.vitals_alarms(loop.state.vitals) == ["FEVER"]

        fast = loop.state.vitals.model_copy(update={"heart_rate": 132})
        assert view.vitals_alarms(fast) == ["TACHYCARDIA", "FEVER"]

        slow = loop.state.vitals.model_copy(update={"heart_rate": 42, "temperature": 36.8})
        assert view.vitals_alarms(slow) == ["BRADYCARDIA"]

        view.print_vitals()
        assert "ALARM: FEVER" in capsys.readouterr().out

    def test_item_at(self):
        _, view = started()
        assert view.item_at(BoardColumn.ACTION, "5") == "Call MD"
        assert view.item_at(BoardColumn.ACTION, "0") is None
        assert view.item_at(BoardColumn.ACTION, "x") is None

    def test_debrief(self, capsys):
        view = TerminalView(board=None)
        state = SimulationState(
            status=GameStatus.GAME_OVER, health=0, learning_report=("Escalate sooner",),
        )
        view.print_debrief(state)
        out = capsys.readouterr().out
        assert "Outcome: Critical" in out
        assert "1. Escalate sooner" in out

    def test_format_entry(self):
        assert TerminalView.format_entry(Sender.SYSTEM, "Correct.") == "\n[NOTE]\nCorrect."


class TestMain:
    def test_no_command_prints_help(self, monkeypatch):
        monkeypatch.delenv("NIGHTSHIFT_THINKING_BUDGET", raising=False)
        with pytest.raises(SystemExit):
            main([])

    def test_upload_requires_pdf(self, capsys):
        with pytest.raises(SystemExit):
            main(["play", "--mode", "upload"])
        assert "--pdf is required" in capsys.readouterr().out

    def test_upload_rejects_empty_pdf(self, tmp_path, capsys):
        empty = tmp_path / "lesson.pdf"
        empty.write_bytes(b"")
        with pytest.raises(SystemExit) as exc_info:
            main(["play", "--mode", "upload", "--pdf", str(empty)])
        assert exc_info.value.code == 1
        assert "File is empty" in capsys.readouterr().out
