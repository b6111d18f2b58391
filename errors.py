"""Shared error codes and user-facing messages."""

from __future__ import annotations

from models import FailureKind

# capture layer
PERMISSION_DENIED = "PERMISSION_DENIED"
ALREADY_ACTIVE = "ALREADY_ACTIVE"
DEVICE_ERROR = "DEVICE_ERROR"
FILE_MISSING = "FILE_MISSING"
SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"

# transport layer
TIMEOUT = FailureKind.TIMEOUT.value
CONNECTION_REFUSED = FailureKind.CONNECTION_REFUSED.value
SERVER_ERROR = FailureKind.SERVER_ERROR.value
MALFORMED_RESPONSE = FailureKind.MALFORMED_RESPONSE.value
UNKNOWN = FailureKind.UNKNOWN.value

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone permission not granted.",
    ALREADY_ACTIVE: "The microphone is already in use.",
    DEVICE_ERROR: "Failed to start recording.",
    FILE_MISSING: "No recording produced.",
    SERVER_UNAVAILABLE: "Server not available. Start the transcription backend first.",
    TIMEOUT: "Request timed out.",
    CONNECTION_REFUSED: "Cannot connect to server.",
    SERVER_ERROR: "Transcription failed.",
    MALFORMED_RESPONSE: "Server response format is invalid.",
    UNKNOWN: "Unknown error occurred.",
}

CONNECT_TIMEOUT_MESSAGE = "Connection timeout - check if server is running"
RECEIVE_TIMEOUT_MESSAGE = "Response timeout - audio may be too large"
SEND_TIMEOUT_MESSAGE = "Upload timeout - the network may be too slow for this recording"
