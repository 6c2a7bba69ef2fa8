"""Payload builder for the remote content API."""

import base64
import logging
from typing import Any, Dict, Optional

import yaml

from note_publisher.core.models import (
    ContentPayload,
    DateMismatch,
    MissingTitle,
    ValidNote,
    commit_message,
)
from note_publisher.core.validation import coerce_date
from note_publisher.transforms.frontmatter import FrontmatterTransform

logger = logging.getLogger(__name__)


def render_note(frontmatter: Dict[str, Any], body: str) -> str:
    """Build final markdown text with frontmatter.

    The body is appended unchanged so it survives a round trip byte for byte.

    Args:
        frontmatter: Frontmatter mapping, in output key order
        body: Markdown body

    Returns:
        Complete markdown string with YAML frontmatter
    """
    if not frontmatter:
        return body
    frontmatter_str = yaml.dump(
        frontmatter,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    return f"---\n{frontmatter_str}---\n{body}"


def target_path(filename: str, base_path: str = "") -> str:
    """Repository path a note is written to."""
    base_path = base_path.strip('/')
    if not base_path:
        return filename
    return f"{base_path}/{filename}"


def encode_content(text: str) -> str:
    return base64.b64encode(text.encode('utf-8')).decode('ascii')


def decode_content(content: str) -> str:
    """Decode base64 content as returned by or sent to the API.

    The API wraps base64 at 60 columns, so embedded newlines are ignored.
    """
    return base64.b64decode(''.join(content.split())).decode('utf-8')


def check_frontmatter(frontmatter: Dict[str, Any], note: ValidNote) -> None:
    """Re-check title and date on frontmatter produced by a transform."""
    raw_date = frontmatter.get('date')
    fm_date = coerce_date(raw_date)
    if fm_date != note.date:
        raise DateMismatch(
            note.filename,
            f"transformed frontmatter date {raw_date!r} does not match "
            f"filename date {note.date.isoformat()}",
        )

    raw_title = frontmatter.get('title')
    if raw_title is None or not str(raw_title).strip():
        raise MissingTitle(note.filename, "transformed frontmatter has no title")


def build_payload(
    note: ValidNote,
    sha: Optional[str] = None,
    branch: str = "main",
    base_path: str = "",
    frontmatter_transform: Optional[FrontmatterTransform] = None,
) -> ContentPayload:
    """Build the create-or-update payload for a validated note.

    Pure: no network access and no mutation of ``note``.

    Args:
        note: Validated note
        sha: Blob SHA of the existing file when updating, else None
        branch: Target branch
        base_path: Directory the note lives under in the repository
        frontmatter_transform: Optional transform applied before serialization

    Returns:
        ContentPayload ready for submission

    Raises:
        DateMismatch, MissingTitle: if the transform broke the frontmatter
    """
    frontmatter = dict(note.frontmatter)
    if frontmatter_transform:
        frontmatter = frontmatter_transform(frontmatter, note)
        check_frontmatter(frontmatter, note)

    text = render_note(frontmatter, note.body)
    path = target_path(note.filename, base_path)
    logger.debug("Built payload for %s (%d bytes)", path, len(text.encode('utf-8')))

    return ContentPayload(
        path=path,
        text=text,
        content=encode_content(text),
        message=commit_message(note.title, update=sha is not None),
        branch=branch,
        title=note.title,
        sha=sha,
    )
