"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a front end and the simulator.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- TURN_IN_PROGRESS: A turn is already being processed for this session
- BOARD_NOT_READY: Bowtie submitted with picks missing
- GAME_NOT_ACTIVE: Session is idle, loading, finished or errored
- INVALID_UPLOAD: Uploaded file is not a usable PDF
- SCENARIO_START_FAILED: The service could not start the scenario
- TRANSPORT_ERROR: The simulation service failed mid-request
- CONFIGURATION_ERROR: The server is missing required configuration
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..engine_core.board import BoardColumn


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    TURN_IN_PROGRESS = "TURN_IN_PROGRESS"
    BOARD_NOT_READY = "BOARD_NOT_READY"
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    INVALID_UPLOAD = "INVALID_UPLOAD"
    SCENARIO_START_FAILED = "SCENARIO_START_FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class VitalsInfo(BaseModel):
    """Vital signs for the monitor."""
    heart_rate: int
    bp_systolic: int
    bp_diastolic: int
    spo2: int
    resp_rate: int
    temperature: float
    condition: str


class MessageInfo(BaseModel):
    """One transcript entry."""
    id: str
    sender: str = Field(description="user, system or ai")
    text: str
    timestamp: float


class BowtieInfo(BaseModel):
    """The current exercise plus the player's picks."""
    potential_conditions: list[str]
    potential_actions: list[str]
    potential_monitoring: list[str]

    selected_condition: Optional[str] = None
    selected_actions: list[str] = Field(default_factory=list)
    selected_monitoring: list[str] = Field(default_factory=list)

    board_state: str = Field(description="empty, selecting, ready or submitted")
    remaining_picks: int = 0
    is_ready: bool = False


# =============================================================================
# Request Models
# =============================================================================

class SendMessageRequest(BaseModel):
    """Free-text question or action for the current turn."""
    text: str = Field(min_length=1, description="What the nurse says or does")


class ToggleRequest(BaseModel):
    """Pick or unpick one bowtie candidate."""
    column: BoardColumn
    item: str


# =============================================================================
# Response Models
# =============================================================================

class SimulationResponse(BaseModel):
    """Full simulation state for one session."""
    session_id: str
    status: str = Field(description="idle, loading, playing, game_over, victory, error")
    is_awaiting: bool = False

    vitals: VitalsInfo
    visual_state: str
    health: int = Field(ge=0, le=100)

    messages: list[MessageInfo] = Field(default_factory=list)
    bowtie: Optional[BowtieInfo] = None
    question: Optional[str] = None
    learning_report: list[str] = Field(default_factory=list)

    error_message: Optional[str] = None
    scenario_mode: Optional[str] = None
    turn_number: int = 0

    api_version: str = "v1"


class ToggleResponse(BaseModel):
    """Result of a board toggle."""
    session_id: str
    changed: bool = Field(description="False if the pick was ignored")
    bowtie: Optional[BowtieInfo] = None


class ErrorResponse(BaseModel):
    """Standardized error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class SessionListResponse(BaseModel):
    """Response listing sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
