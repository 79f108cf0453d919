"""
Custom exception classes for PDF forensic analysis.

This module defines the exception hierarchy for all error conditions
that can occur while loading, comparing and scoring PDF documents.
Only InvalidInputError and AnalysisCancelledError are expected to reach
callers of the detection engine; tool errors are absorbed by the
external signal adapter.
"""


class PDFForensicError(Exception):
    """
    Base exception class for all PDF forensic tool errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary containing additional error context
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the base exception.

        Args:
            message: Error message describing what went wrong
            details: Optional dictionary with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return a string representation of the exception."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class InvalidInputError(PDFForensicError):
    """
    Raised when an input document cannot be opened or parsed.

    This is fatal for a run and is raised before any analysis stage starts:
    - The file does not exist or cannot be read
    - The file is not a PDF the document reader can open
    - The document requires a password

    Attributes:
        file_path: Path to the offending file
        reason: Specific reason for the failure
        cause: Optional underlying exception
    """

    def __init__(
        self,
        file_path: str,
        reason: str = None,
        cause: Exception = None
    ):
        self.file_path = file_path
        self.reason = reason or "Document could not be opened"
        self.cause = cause

        message = f"Invalid input document: {file_path}. {self.reason}"

        details = {
            "file_path": file_path,
            "reason": self.reason,
        }

        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details)


class AnalysisCancelledError(PDFForensicError):
    """
    Raised when cooperative cancellation is observed between stages.

    Attributes:
        stage: Name of the stage that was about to start
    """

    def __init__(self, stage: str = None):
        self.stage = stage

        message = "Analysis cancelled"
        details = {}
        if stage:
            message += f" before stage '{stage}'"
            details["stage"] = stage

        super().__init__(message, details)


class ToolUnavailableError(PDFForensicError):
    """
    Raised when an external inspection tool is not installed.

    Attributes:
        tool: Name of the missing executable (e.g. 'mutool')
    """

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"External tool not available: {tool}", {"tool": tool})


class ToolFailedError(PDFForensicError):
    """
    Raised when an external tool invocation fails.

    Covers non-zero exit codes, timeouts and launch errors. Scoped to a
    single sub-operation; never fatal for a run.

    Attributes:
        tool: Name of the executable
        reason: What went wrong
        returncode: Process exit code, if the process ran to completion
        stderr: Captured standard error, truncated
    """

    def __init__(
        self,
        tool: str,
        reason: str,
        returncode: int = None,
        stderr: str = None
    ):
        self.tool = tool
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr

        details = {"tool": tool}
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            details["stderr"] = stderr[:200]

        super().__init__(f"External tool failed: {reason}", details)
