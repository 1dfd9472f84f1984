"""
Error types for SVK tool handlers.

Absence and malformed artifacts are never errors (handlers return a
"found": False payload). Only caller mistakes raise, and the tool layer
turns them into {"status": "ERROR"} responses.
"""


class SvkError(Exception):
    """Base class for all SVK handler errors."""


class InvalidArgumentError(SvkError):
    """A tool argument was rejected at the boundary."""

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.details = details


class EmptyQueryError(InvalidArgumentError):
    pass


class UnknownScopeError(InvalidArgumentError):
    pass


class PathTraversalError(InvalidArgumentError):
    pass


class UnknownKnowledgeBaseError(InvalidArgumentError):
    pass
