"""Exit codes for the ``payment-sdk`` CLI.

Scripts can tell failure categories apart without parsing messages.
"""

from __future__ import annotations

SUCCESS = 0

# Connectivity problem, or the service kept failing
SERVICE_UNAVAILABLE = 1

# No API key stored
AUTH_ERROR = 2

# The service answered with something we could not use
BAD_RESPONSE = 3

# Anything else (bad input, config errors, unknown failures)
OTHER_ERROR = 4


ERROR_CODE_MAP: dict[str, int] = {
    "NETWORK_ERROR": SERVICE_UNAVAILABLE,
    "SERVER_ERROR": SERVICE_UNAVAILABLE,
    "REQUEST_FAILED": SERVICE_UNAVAILABLE,
    "MISSING_API_KEY": AUTH_ERROR,
    "INVALID_RESPONSE": BAD_RESPONSE,
    "VALIDATION_ERROR": OTHER_ERROR,
    "UNKNOWN": OTHER_ERROR,
}


def exit_code_for(error_code: str) -> int:
    """Map an error code string to a CLI exit code."""
    return ERROR_CODE_MAP.get(error_code, OTHER_ERROR)
