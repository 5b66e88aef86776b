"""
API Module - HTTP interface for simulator front ends.

A front end:
1. Starts a session in one of three modes
2. Sends questions or toggles and submits the bowtie
3. Renders the returned simulation state
4. Shows the debrief when the scenario ends

All state is session-scoped. No accounts, no persistence.
"""

from .schemas import (
    # Requests
    SendMessageRequest,
    ToggleRequest,
    # Responses
    SimulationResponse,
    ToggleResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Shared
    VitalsInfo,
    MessageInfo,
    BowtieInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "SendMessageRequest",
    "ToggleRequest",
    # Responses
    "SimulationResponse",
    "ToggleResponse",
    "ErrorResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "HealthResponse",
    # Shared
    "VitalsInfo",
    "MessageInfo",
    "BowtieInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
