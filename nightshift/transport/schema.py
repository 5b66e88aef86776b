"""
Response Schema - Strict validation at the transport boundary.

The service is constrained to TURN_RESPONSE_SCHEMA, but its output is
never trusted implicitly: every payload goes through parse_turn_payload,
which returns a tagged ParseResult instead of raising.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import re

from pydantic import ValidationError

from ..engine_core.state import VisualState, VitalsCondition
from ..engine_core.turn import TurnResult

logger = logging.getLogger(__name__)


# Schema handed to the service with every request (google-genai Schema dict)
TURN_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "narrative": {
            "type": "STRING",
            "description": "The scenario update. Brief and concise.",
        },
        "feedback": {
            "type": "STRING",
            "description": "Feedback on the previous bowtie selection. Explain pathophysiology.",
        },
        "question": {
            "type": "STRING",
            "description": "Prompt text, e.g. 'Complete the diagram based on the current assessment.'",
        },
        "vitalSigns": {
            "type": "OBJECT",
            "properties": {
                "heartRate": {"type": "INTEGER"},
                "bpSystolic": {"type": "INTEGER"},
                "bpDiastolic": {"type": "INTEGER"},
                "spo2": {"type": "INTEGER"},
                "respRate": {"type": "INTEGER"},
                "temperature": {"type": "NUMBER"},
                "condition": {
                    "type": "STRING",
                    "enum": [c.value.upper() for c in VitalsCondition],
                },
            },
            "required": [
                "heartRate", "bpSystolic", "bpDiastolic",
                "spo2", "respRate", "temperature", "condition",
            ],
        },
        "visualState": {
            "type": "STRING",
            "enum": [v.value.upper() for v in VisualState],
            "description": "The visual appearance of the patient.",
        },
        "bowtie": {
            "type": "OBJECT",
            "description": "NGN bowtie clinical judgment options.",
            "properties": {
                "potentialConditions": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "4 potential conditions (center of bowtie).",
                },
                "potentialActions": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "5 potential interventions (left of bowtie).",
                },
                "potentialMonitoring": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "5 potential parameters to monitor (right of bowtie).",
                },
            },
            "required": ["potentialConditions", "potentialActions", "potentialMonitoring"],
            "nullable": True,
        },
        "patientHealth": {"type": "INTEGER", "description": "0-100 scale."},
        "isGameOver": {"type": "BOOLEAN"},
        "isVictory": {"type": "BOOLEAN"},
        "learningReport": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Takeaways, required when the game ends.",
            "nullable": True,
        },
    },
    "required": [
        "narrative", "feedback", "vitalSigns", "visualState",
        "patientHealth", "isGameOver", "isVictory",
    ],
}


_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class ParseResult:
    """
    Tagged result of validating one payload.

    Exactly one of turn / error is set.
    """
    ok: bool
    turn: TurnResult | None = None
    error: str | None = None
    raw: str = ""

    @classmethod
    def success(cls, turn: TurnResult, raw: str = "") -> ParseResult:
        return cls(ok=True, turn=turn, raw=raw)

    @classmethod
    def failure(cls, error: str, raw: str = "") -> ParseResult:
        return cls(ok=False, error=error, raw=raw)


def _strip_fence(text: str) -> str:
    match = _FENCE_RE.match(text.strip())
    return match.group(1) if match else text.strip()


def parse_turn_payload(raw: str | None) -> ParseResult:
    """
    Validate a raw service payload into a TurnResult.

    Anything that is not JSON, or does not match the schema, is a
    failure for that turn.
    """
    if raw is None or not raw.strip():
        return ParseResult.failure("Empty response from simulation service", raw=raw or "")

    try:
        turn = TurnResult.model_validate_json(_strip_fence(raw))
    except ValidationError as e:
        logger.debug("Rejected service payload: %s", raw)
        summary = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        return ParseResult.failure(f"Invalid turn format: {summary}", raw=raw)

    return ParseResult.success(turn, raw=raw)
