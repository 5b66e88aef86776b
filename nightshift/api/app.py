"""
FastAPI Application - REST API for simulator front ends.

Endpoints:
    GET    /api/v1/health                          Health check
    POST   /api/v1/sessions                        Start a scenario
    GET    /api/v1/sessions                        List sessions
    GET    /api/v1/sessions/{id}                   Get simulation state
    DELETE /api/v1/sessions/{id}                   End session
    POST   /api/v1/sessions/{id}/messages          Send a free-text question/action
    POST   /api/v1/sessions/{id}/board/toggle      Pick/unpick a bowtie candidate
    POST   /api/v1/sessions/{id}/board/submit      Submit the completed bowtie

Turn Flow:
    1. POST /sessions starts the scenario and returns the opening turn
    2. The player either:
       - POSTs /messages with a question (the bowtie repeats, picks kept), or
       - toggles 1 condition + 2 actions + 2 monitoring, then POSTs /board/submit
    3. Each call returns the full simulation state after the service replies
    4. When status is game_over or victory, learning_report holds the debrief

Only one turn per session is processed at a time; a concurrent call
gets 409 TURN_IN_PROGRESS.
"""

from typing import Annotated, Optional, Union

from ..config import configure_logging, load_settings

API_VERSION = "1.0.0"


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, File, Form, Request, UploadFile
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn python-multipart"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        SendMessageRequest,
        ToggleRequest,
        # Response models
        SimulationResponse,
        ToggleResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )
    from ..engine_core.state import ScenarioMode
    from ..errors import NightShiftError

    api_service = service or APIService()
    settings = api_service.settings

    app = FastAPI(
        title="Night Shift Simulator API",
        description="""
Narrative clinical-judgment simulator. The player is a nurse managing a
deteriorating patient through NGN bowtie challenges.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `TURN_IN_PROGRESS` | A turn is already being processed |
| `BOARD_NOT_READY` | Bowtie submitted with picks missing |
| `GAME_NOT_ACTIVE` | Session is not accepting input |
| `INVALID_UPLOAD` | Upload is not a usable PDF |
| `SCENARIO_START_FAILED` | The scenario could not be started |
| `TRANSPORT_ERROR` | The simulation service failed mid-request |
| `CONFIGURATION_ERROR` | Server is missing its API key or settings |
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_service(response) -> Union[JSONResponse, object]:
        """Map an ErrorResponse from the service to an HTTP status."""
        if not isinstance(response, ErrorResponse):
            return response
        status_codes = {
            ErrorCode.SESSION_NOT_FOUND: 404,
            ErrorCode.INVALID_UPLOAD: 400,
            ErrorCode.SCENARIO_START_FAILED: 502,
        }
        return make_error_response(
            response.error_code,
            response.error,
            status_code=status_codes.get(response.error_code, 400),
            details=response.details,
        )

    @app.exception_handler(NightShiftError)
    async def handle_simulator_error(request: Request, exc: NightShiftError):
        status_codes = {
            ErrorCode.TURN_IN_PROGRESS: 409,
            ErrorCode.BOARD_NOT_READY: 409,
            ErrorCode.GAME_NOT_ACTIVE: 409,
            ErrorCode.TRANSPORT_ERROR: 502,
            ErrorCode.CONFIGURATION_ERROR: 503,
        }
        try:
            error_code = ErrorCode(exc.error_code)
        except ValueError:
            error_code = ErrorCode.INTERNAL_ERROR
        return make_error_response(
            error_code, str(exc), status_code=status_codes.get(error_code, 500)
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SimulationResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid upload"},
            502: {"model": ErrorResponse, "description": "Scenario could not start"},
        },
        tags=["Sessions"],
        summary="Start a new scenario",
    )
    async def start_session(
        mode: Annotated[ScenarioMode, Form(description="random, class or upload")] = ScenarioMode.RANDOM,
        topic: Annotated[Optional[str], Form(description="Topic for random mode")] = None,
        document: Annotated[Optional[UploadFile], File(description="Lesson plan PDF for upload mode")] = None,
    ):
        """
        Start a scenario and return the opening turn.

        Use `mode=upload` with a PDF `document` to derive the case from a
        lesson plan.
        """
        pdf_bytes = None
        if mode == ScenarioMode.UPLOAD:
            if document is None or document.content_type != "application/pdf":
                return make_error_response(
                    ErrorCode.INVALID_UPLOAD, "Please upload a valid PDF file."
                )
            pdf_bytes = await document.read()

        response = await api_service.start_session(mode, topic=topic, pdf_bytes=pdf_bytes)
        return from_service(response)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SimulationResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get simulation state",
    )
    async def get_session(session_id: str):
        return from_service(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a session and release its state."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Turn Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/messages",
        response_model=SimulationResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Turn in progress or game not active"},
        },
        tags=["Game Loop"],
        summary="Send a free-text question or action",
    )
    async def send_message(session_id: str, request: SendMessageRequest):
        return from_service(await api_service.send_message(session_id, request.text))

    @app.post(
        "/api/v1/sessions/{session_id}/board/toggle",
        response_model=ToggleResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Pick or unpick a bowtie candidate",
    )
    async def toggle_board(session_id: str, request: ToggleRequest):
        return from_service(api_service.toggle(session_id, request.column, request.item))

    @app.post(
        "/api/v1/sessions/{session_id}/board/submit",
        response_model=SimulationResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Board not ready or turn in progress"},
        },
        tags=["Game Loop"],
        summary="Submit the completed bowtie",
    )
    async def submit_board(session_id: str):
        return from_service(await api_service.submit_board(session_id))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="nightshift",
            version=API_VERSION,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Night Shift Simulator API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    return app


def create_default_app():
    """Factory for uvicorn: uvicorn nightshift.api.app:create_default_app --factory"""
    configure_logging(load_settings())
    return create_app()
