"""
Note Publisher - Validate and publish research notes to a static site repository

A small library an agent uses to create, name and publish dated Markdown
notes through a remote content API, with support for:
- Filename, slug and frontmatter validation
- YAML frontmatter payload building
- Create-or-update writes guarded by the remote blob SHA
"""

from note_publisher.core.models import (
    NoteError,
    Note,
    ValidNote,
    ContentPayload,
    CommitRef,
    PublishResult,
    NotePublisherError,
    ValidationError,
    SubmitError,
    RemoteConflict,
)
from note_publisher.core.validation import NoteValidator, validate_note, load_note, parse_note, suggest_filename
from note_publisher.core.payload import build_payload
from note_publisher.core.submitter import NoteSubmitter, SubmitterConfig, create_submitter_from_config

__version__ = "0.1.0"

__all__ = [
    "NoteError",
    "Note",
    "ValidNote",
    "ContentPayload",
    "CommitRef",
    "PublishResult",
    "NotePublisherError",
    "ValidationError",
    "SubmitError",
    "RemoteConflict",
    "NoteValidator",
    "validate_note",
    "load_note",
    "parse_note",
    "suggest_filename",
    "build_payload",
    "NoteSubmitter",
    "SubmitterConfig",
    "create_submitter_from_config",
]
