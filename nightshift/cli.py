"""
Night Shift CLI - Command-line interface for the simulator.

Usage:
    nightshift play [--mode random|class|upload] [--topic T] [--pdf FILE]
    nightshift serve [--host HOST] [--port PORT]

In play, anything typed is sent to the patient's room as free text.
Board commands:
    :c N      toggle condition N
    :a N      toggle action N
    :m N      toggle monitoring parameter N
    :submit   submit the bowtie
    :board    show the bowtie again
    :quit     leave the station
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import configure_logging, load_settings
from .engine_core.board import BoardColumn, DecisionBoard
from .engine_core.message_log import entries_since
from .engine_core.state import GameStatus, ScenarioMode, Sender, SimulationState
from .errors import BoardNotReadyError, ConfigurationError, NightShiftError

logger = logging.getLogger(__name__)

COLUMN_COMMANDS = {
    ":c": BoardColumn.CONDITION,
    ":a": BoardColumn.ACTION,
    ":m": BoardColumn.MONITORING,
}


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Night Shift - Clinical judgment simulator",
        prog="nightshift",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    play_parser = subparsers.add_parser("play", help="Play a scenario in the terminal")
    play_parser.add_argument(
        "--mode",
        choices=[m.value for m in ScenarioMode],
        default=ScenarioMode.RANDOM.value,
        help="Scenario start mode",
    )
    play_parser.add_argument("--topic", help="Topic for random mode, e.g. 'Heart Failure'")
    play_parser.add_argument("--pdf", help="Lesson plan PDF for upload mode")

    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings)

    if args.command == "play":
        cmd_play(args, settings)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_play(args, settings):
    """Play a scenario interactively."""
    from .session import GameLoop
    from .transport import GeminiTransport

    mode = ScenarioMode(args.mode)
    payload = args.topic
    if mode == ScenarioMode.UPLOAD:
        if not args.pdf:
            print("Error: --pdf is required for upload mode")
            sys.exit(1)
        try:
            payload = Path(args.pdf).read_bytes()
        except FileNotFoundError:
            print(f"Error: File not found: {args.pdf}")
            sys.exit(1)
        if not payload:
            print(f"Error: File is empty: {args.pdf}")
            sys.exit(1)

    try:
        transport = GeminiTransport.from_settings(settings)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    loop = GameLoop(transport, session_id="terminal")
    view = TerminalView(loop.board, feedback_delay=settings.feedback_delay)
    loop.subscribe(view.update)

    try:
        asyncio.run(play_session(loop, view, mode, payload))
    except KeyboardInterrupt:
        print("\nShift ended.")


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "nightshift.api.app:create_default_app",
        host=args.host,
        port=args.port,
        factory=True,
    )


async def play_session(loop, view, mode: ScenarioMode, payload):
    print("NIGHT SHIFT - starting simulation...")
    await loop.start(mode, payload)
    # start() replaces the board
    view.board = loop.board
    await view.flush()

    if loop.state.status == GameStatus.ERROR:
        print(f"Simulation Error: {loop.state.error_message}")
        return

    while loop.state.status == GameStatus.PLAYING:
        line = (await asyncio.to_thread(input, "\n> ")).strip()
        if not line:
            continue
        if line == ":quit":
            return

        try:
            await handle_line(loop, view, line)
        except BoardNotReadyError as e:
            print(f"  {e}")
        except NightShiftError as e:
            logger.error("Turn rejected: %s", e)
            print(f"  {e}")
        await view.flush()

    view.print_debrief(loop.state)


async def handle_line(loop, view, line: str):
    parts = line.split()
    command = parts[0]

    if command == ":board":
        view.print_board()
    elif command == ":submit":
        await loop.submit_board()
    elif command in COLUMN_COMMANDS:
        column = COLUMN_COMMANDS[command]
        item = view.item_at(column, parts[1] if len(parts) > 1 else "")
        if item is None:
            print("  No such option")
        elif not loop.toggle(column, item):
            print("  Selection ignored")
        else:
            view.print_board()
    else:
        await loop.send_text(line)


class TerminalView:
    """Prints state changes to the terminal."""

    def __init__(self, board: DecisionBoard, feedback_delay: float = 0.5):
        self.board = board
        self.feedback_delay = feedback_delay
        self.state = SimulationState()
        self._last_seen: str | None = None
        self._last_turn = -1

    def update(self, state: SimulationState):
        self.state = state

    async def flush(self):
        """Print entries appended since the last flush."""
        previous = None
        for entry in entries_since(self.state.messages, self._last_seen):
            if entry.sender == Sender.SYSTEM and previous == Sender.AI:
                # Feedback reads as a follow-up note
                await asyncio.sleep(self.feedback_delay)
            if entry.sender != Sender.USER:
                print(self.format_entry(entry.sender, entry.text))
            previous = entry.sender
            self._last_seen = entry.entry_id

        if self.state.turn_number != self._last_turn and self.state.status == GameStatus.PLAYING:
            self._last_turn = self.state.turn_number
            self.print_vitals()
            self.print_board()

    @staticmethod
    def format_entry(sender: Sender, text: str) -> str:
        label = {Sender.AI: "PATIENT ROOM", Sender.SYSTEM: "NOTE", Sender.USER: "YOU"}[sender]
        return f"\n[{label}]\n{text}"

    @staticmethod
    def vitals_alarms(vitals) -> list[str]:
        alarms = []
        if vitals.is_tachycardic:
            alarms.append("TACHYCARDIA")
        elif vitals.is_bradycardic:
            alarms.append("BRADYCARDIA")
        if vitals.is_febrile:
            alarms.append("FEVER")
        return alarms

    def print_vitals(self):
        v = self.state.vitals
        print(
            f"\nHR {v.heart_rate} | BP {v.blood_pressure} | SpO2 {v.spo2}% | "
            f"RR {v.resp_rate} | T {v.temperature:.1f} | {v.condition.value.upper()} | "
            f"appearance: {self.state.visual_state.value} | health {self.state.health}/100"
        )
        alarms = self.vitals_alarms(v)
        if alarms:
            print(f"  ALARM: {', '.join(alarms)}")

    def item_at(self, column: BoardColumn, raw_index: str) -> str | None:
        exercise = self.board.exercise
        if exercise is None or not raw_index.isdigit():
            return None
        options = {
            BoardColumn.CONDITION: exercise.potential_conditions,
            BoardColumn.ACTION: exercise.potential_actions,
            BoardColumn.MONITORING: exercise.potential_monitoring,
        }[column]
        idx = int(raw_index) - 1
        return options[idx] if 0 <= idx < len(options) else None

    def print_board(self):
        exercise = self.board.exercise
        if exercise is None:
            return
        if self.state.question:
            print(f"\n{self.state.question}")
        selection = self.board.selection
        columns = [
            ("Condition (:c, pick 1)", exercise.potential_conditions, {selection.condition}),
            ("Actions (:a, pick 2)", exercise.potential_actions, set(selection.actions)),
            ("Monitoring (:m, pick 2)", exercise.potential_monitoring, set(selection.monitoring)),
        ]
        for title, options, chosen in columns:
            print(f"\n  {title}")
            for idx, option in enumerate(options, start=1):
                mark = "x" if option in chosen else " "
                print(f"    [{mark}] {idx}. {option}")

        if self.board.is_ready():
            print("\n  Ready - type :submit")
        else:
            print(f"\n  Select remaining: {self.board.remaining_picks()}")

    def print_debrief(self, state: SimulationState):
        if state.status == GameStatus.VICTORY:
            print("\nSIMULATION DEBRIEF - Outcome: Stable")
            print("The patient has been stabilized and transferred.")
        else:
            print("\nSIMULATION DEBRIEF - Outcome: Critical")
            print("Resuscitation efforts have ceased. Review the decision points below.")
        print(f"Final health: {state.health}/100")
        if state.learning_report:
            print("\nKey Learning Points")
            for idx, point in enumerate(state.learning_report, start=1):
                print(f"  {idx}. {point}")


if __name__ == "__main__":
    main()
