"""Data models and errors for Note Publisher."""

import datetime
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

ADD_MESSAGE = "Add research note: {title}"
UPDATE_MESSAGE = "Update research note: {title}"


def commit_message(title: str, update: bool = False) -> str:
    """Commit message for creating or updating the note called ``title``."""
    template = UPDATE_MESSAGE if update else ADD_MESSAGE
    return template.format(title=title)


class NotePublisherError(Exception):
    """Base class for every error raised by Note Publisher."""


class ValidationError(NotePublisherError):
    """A note was rejected before any network call was made."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.reason = reason


class InvalidFilename(ValidationError):
    """Filename is not of the form YYYY-MM-DD-slug.md."""


class InvalidSlug(ValidationError):
    """Slug is not URL-friendly or is a reserved generic value."""


class DateMismatch(ValidationError):
    """Frontmatter date is missing or disagrees with the filename date."""


class MissingTitle(ValidationError):
    """Frontmatter title is missing or blank."""


class InvalidFrontmatter(ValidationError):
    """Frontmatter block could not be parsed as a YAML mapping."""


class SubmitError(NotePublisherError):
    """The remote content API rejected or never received a write."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class RemoteConflict(SubmitError):
    """Another writer changed the path since the version we based ours on."""


class AuthFailure(SubmitError):
    """Credentials were missing, invalid, or lack write access."""


class NetworkError(SubmitError):
    """The request never completed (connection failure, timeout)."""


class RemoteError(SubmitError):
    """Any other error status returned by the API."""

    def __init__(self, path: str, reason: str, status_code: int):
        super().__init__(path, reason)
        self.status_code = status_code


@dataclass
class Note:
    """A proposed note, exactly as the submitting agent wrote it."""
    filename: str
    frontmatter: Dict[str, Any]
    body: str


@dataclass
class ValidNote:
    """A note that passed validation.

    Tags are normalized (lowercase, deduplicated) and frontmatter holds
    the canonical title, date and tags followed by any extra keys.
    """
    filename: str
    slug: str
    date: datetime.date
    title: str
    tags: List[str]
    body: str
    frontmatter: Dict[str, Any]


@dataclass(frozen=True)
class ContentPayload:
    """Everything needed for one create-or-update call."""
    path: str
    text: str
    content: str
    message: str
    branch: str
    title: str
    sha: Optional[str] = None

    @property
    def is_update(self) -> bool:
        return self.sha is not None

    def as_update(self, sha: str) -> "ContentPayload":
        """Return a copy targeting the existing blob ``sha``."""
        return replace(self, sha=sha, message=commit_message(self.title, update=True))

    def to_json(self) -> Dict[str, str]:
        """Request body for the contents endpoint."""
        body = {
            'message': self.message,
            'content': self.content,
            'branch': self.branch,
        }
        if self.sha is not None:
            body['sha'] = self.sha
        return body


@dataclass
class RemoteFile:
    """An existing file on the remote branch."""
    path: str
    sha: str


@dataclass
class CommitRef:
    """Result of a successful write."""
    path: str
    commit_sha: str
    content_sha: str
    html_url: Optional[str] = None
    created: bool = True


@dataclass
class NoteError:
    """A note that failed at any phase: loading, validation, or submission."""
    path: str
    error: str
    title: Optional[str] = None


@dataclass
class PublishResult:
    """Result of a batch publish operation."""
    published_titles: List[str] = field(default_factory=list)
    failures: List[NoteError] = field(default_factory=list)
    commits: List[CommitRef] = field(default_factory=list)
    dry_run: bool = False
