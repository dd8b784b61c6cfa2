"""Canned user-facing messages keyed by failure kind."""

NETWORK_ERROR = "Unable to connect to the server. Please check your internet connection."
TIMEOUT_ERROR = "Request timed out. Please try again."

UNAUTHORIZED = "Your session has expired. Please log in again."
INVALID_CREDENTIALS = "Invalid email or password. Please try again."

FORBIDDEN = "You do not have permission to perform this action."

VALIDATION_FAILED = "Please check your input and try again."

SERVER_ERROR = "A server error occurred. Please try again later."
SERVICE_UNAVAILABLE = "Service is temporarily unavailable. Please try again later."

OPERATION_FAILED = "Operation failed. Please try again."
UNKNOWN_ERROR = "An unexpected error occurred. Please try again."

# Terms that mark a server message as implementation detail rather than
# something a user should read.
TECHNICAL_TERMS: tuple[str, ...] = (
    "exception",
    "stack trace",
    "traceback",
    "query",
    "database",
    "sql",
    "undefined method",
    "class not found",
    "syntax error",
    "fatal error",
    "segmentation fault",
    "null pointer",
)
