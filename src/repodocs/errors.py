from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    LIBRARY_NOT_FOUND = "LIBRARY_NOT_FOUND"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    CLONE_FAILED = "CLONE_FAILED"
    FILE_UNREADABLE = "FILE_UNREADABLE"
    FRONT_MATTER_INVALID = "FRONT_MATTER_INVALID"
    INVALID_PATH = "INVALID_PATH"
    COMPILE_FAILED = "COMPILE_FAILED"
    INVALID_INPUT = "INVALID_INPUT"


class DocsError(Exception):
    """Raised for all expected failure conditions.

    Acquisition errors surface per library, parse errors per file and
    compile errors per render request. Tool handlers let this propagate
    to server.py, which serialises it into the MCP error response.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
