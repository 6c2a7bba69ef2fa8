"""Core components for Note Publisher."""

from note_publisher.core.models import (
    AuthFailure,
    CommitRef,
    ContentPayload,
    DateMismatch,
    InvalidFilename,
    InvalidFrontmatter,
    InvalidSlug,
    MissingTitle,
    NetworkError,
    Note,
    NoteError,
    NotePublisherError,
    PublishResult,
    RemoteConflict,
    RemoteError,
    RemoteFile,
    SubmitError,
    ValidationError,
    ValidNote,
)
from note_publisher.core.validation import NoteValidator, load_note, parse_note, suggest_filename, validate_note
from note_publisher.core.payload import build_payload, decode_content, render_note
from note_publisher.core.submitter import NoteSubmitter, SubmitterConfig, create_submitter_from_config

__all__ = [
    "AuthFailure",
    "CommitRef",
    "ContentPayload",
    "DateMismatch",
    "InvalidFilename",
    "InvalidFrontmatter",
    "InvalidSlug",
    "MissingTitle",
    "NetworkError",
    "Note",
    "NoteError",
    "NotePublisherError",
    "PublishResult",
    "RemoteConflict",
    "RemoteError",
    "RemoteFile",
    "SubmitError",
    "ValidationError",
    "ValidNote",
    "NoteValidator",
    "load_note",
    "parse_note",
    "suggest_filename",
    "validate_note",
    "build_payload",
    "decode_content",
    "render_note",
    "NoteSubmitter",
    "SubmitterConfig",
    "create_submitter_from_config",
]
