"""Shared machine-readable error codes.

Used when the server does not supply its own ``error_code``.
"""

# Transport
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"

# Credentials / permissions
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"

# Request shape
INVALID_REQUEST = "INVALID_REQUEST"
VALIDATION_FAILED = "VALIDATION_FAILED"
REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
RATE_LIMITED = "RATE_LIMITED"
CLIENT_ERROR = "CLIENT_ERROR"

# Server side
SERVER_ERROR = "SERVER_ERROR"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

# Fallback
UNKNOWN_ERROR = "UNKNOWN_ERROR"
