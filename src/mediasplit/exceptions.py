"""
mediasplit exception hierarchy.

Provides typed exceptions so the CLI can report failures with a clear message
and tests can assert on the exact failure kind.

Exception Hierarchy:
    MediaSplitError (base)
    ├── ConfigurationError - Invalid options or settings
    │   └── MetadataFormatError - Malformed key=value metadata pair
    ├── TemplateError - Section template problems
    │   ├── TemplateNotFoundError - Template file missing/unreadable
    │   └── MalformedTemplateError - Line without a usable time marker
    ├── InputError - Local filesystem problems
    │   ├── UnreadableInputError - Input media missing/unreadable
    │   └── OutputDirectoryError - Output directory unusable
    ├── NetworkError - Remote source failures
    │   ├── RemoteResolutionError - Metadata fetch / format negotiation
    │   └── DownloadError - Media stream download failure
    └── ExternalToolError - ffmpeg/subprocess failures
        ├── ExecutableNotFoundError - ffmpeg not found
        ├── TranscodeError - ffmpeg exited with an error
        └── JobFailedError - One section's job failed during dispatch
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mediasplit.planner import Section


class MediaSplitError(Exception):
    """Base exception for all mediasplit errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """
        Initialize mediasplit exception.

        Args:
            message: Human-readable error message
            details: Optional structured error details for logging/debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(MediaSplitError):
    """Invalid option or settings value."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.field = field


class MetadataFormatError(ConfigurationError):
    """Metadata entry is not in key=value form."""

    def __init__(self, message: str, *, entry: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("field", "metadata")
        details = kwargs.get("details") or {}
        if entry is not None:
            details["entry"] = entry
        kwargs["details"] = details
        super().__init__(message, **kwargs)
        self.entry = entry


# =============================================================================
# Template Errors
# =============================================================================


class TemplateError(MediaSplitError):
    """Section template failure."""

    pass


class TemplateNotFoundError(TemplateError):
    """Template file could not be opened."""

    def __init__(self, message: str, *, template: Path | str | None = None) -> None:
        details: dict[str, Any] = {}
        if template:
            details["template"] = str(template)
        super().__init__(message, details=details)
        self.template = template


class MalformedTemplateError(TemplateError):
    """A template line has no parseable time marker.

    ``line`` always refers to the 1-based line number in the original
    template, never to the position in the sorted plan.
    """

    def __init__(self, line: int, reason: str | None = None) -> None:
        message = reason or f"Line {line} does not contain a valid time range"
        super().__init__(message, details={"line": line})
        self.line = line


# =============================================================================
# Input Errors
# =============================================================================


class InputError(MediaSplitError):
    """Local file or directory failure."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if path:
            details["path"] = str(path)
        super().__init__(message, details=details)
        self.path = path


class UnreadableInputError(InputError):
    """Input media file is missing or not readable."""

    pass


class OutputDirectoryError(InputError):
    """Output directory is missing, not a directory, or not writable."""

    pass


# =============================================================================
# Network Errors
# =============================================================================


class NetworkError(MediaSplitError):
    """Remote source communication failure."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code


class RemoteResolutionError(NetworkError):
    """Remote metadata fetch or format negotiation failed."""

    pass


class DownloadError(NetworkError):
    """Remote media download failed."""

    def __init__(
        self,
        message: str,
        *,
        target_path: Path | str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.get("details") or {}
        if target_path:
            details["target_path"] = str(target_path)
        kwargs["details"] = details
        super().__init__(message, **kwargs)
        self.target_path = target_path


# =============================================================================
# External Tool Errors
# =============================================================================


class ExternalToolError(MediaSplitError):
    """External tool/subprocess failure."""

    def __init__(
        self,
        message: str,
        *,
        tool: str | None = None,
        command: str | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if tool:
            details["tool"] = tool
        if command:
            details["command"] = command
        if return_code is not None:
            details["return_code"] = return_code
        if stderr:
            details["stderr"] = stderr
        super().__init__(message, details=details)
        self.tool = tool
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class ExecutableNotFoundError(ExternalToolError):
    """ffmpeg could not be located."""

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("tool", "ffmpeg")
        super().__init__(
            message
            or "Unable to spawn FFmpeg's process. "
            "Make sure it is installed and available on your path",
            **kwargs,
        )


class TranscodeError(ExternalToolError):
    """ffmpeg exited with a non-zero status."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("tool", "ffmpeg")
        super().__init__(message, **kwargs)


class JobFailedError(ExternalToolError):
    """A single section failed during dispatch.

    Raised by the scheduler after every job has finished. ``failures`` holds
    all failed jobs in plan order; this instance is always ``failures[0]``.
    """

    def __init__(self, section: Section, cause: BaseException) -> None:
        super().__init__(
            f'Failed to split "{section.output_name}": {cause}',
            details={"section": section.output_name, "index": section.index},
        )
        self.section = section
        self.cause = cause
        self.failures: list[JobFailedError] = [self]
