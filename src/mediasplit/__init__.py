"""mediasplit - split one media file or URL into tracks from a timestamp template."""

from mediasplit.exceptions import (
    ConfigurationError,
    DownloadError,
    ExecutableNotFoundError,
    ExternalToolError,
    InputError,
    JobFailedError,
    MalformedTemplateError,
    MediaSplitError,
    MetadataFormatError,
    NetworkError,
    OutputDirectoryError,
    RemoteResolutionError,
    TemplateError,
    TemplateNotFoundError,
    TranscodeError,
    UnreadableInputError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Base exception
    "MediaSplitError",
    # Configuration
    "ConfigurationError",
    "MetadataFormatError",
    # Template
    "TemplateError",
    "TemplateNotFoundError",
    "MalformedTemplateError",
    # Filesystem
    "InputError",
    "UnreadableInputError",
    "OutputDirectoryError",
    # Network
    "NetworkError",
    "RemoteResolutionError",
    "DownloadError",
    # External tools
    "ExternalToolError",
    "ExecutableNotFoundError",
    "TranscodeError",
    "JobFailedError",
]
