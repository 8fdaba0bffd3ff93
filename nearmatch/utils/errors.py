"""Custom exception types for consistent error handling."""


class InvalidInputError(Exception):
    """Raised when request input validation fails."""


class GraphExecutionError(Exception):
    """Raised when a graph fails to compile or execute."""
