"""
Exception hierarchy.

Expected outcomes (a malformed service payload, an over-cap board pick)
are returned as values, not raised. These exceptions cover contract
violations and faults at the transport boundary.
"""


class NightShiftError(Exception):
    """Base class for all simulator errors."""
    error_code = "INTERNAL_ERROR"


class ConfigurationError(NightShiftError):
    """Required configuration is missing or invalid."""
    error_code = "CONFIGURATION_ERROR"


class TransportError(NightShiftError):
    """The generative service could not be reached or returned nothing."""
    error_code = "TRANSPORT_ERROR"


class TurnInProgressError(NightShiftError):
    """A transport call is already outstanding for this session."""
    error_code = "TURN_IN_PROGRESS"


class BoardNotReadyError(NightShiftError):
    """The decision board is missing picks or was already submitted."""
    error_code = "BOARD_NOT_READY"


class GameNotActiveError(NightShiftError):
    """The session is not in a state that accepts player input."""
    error_code = "GAME_NOT_ACTIVE"
