"""Validation of research notes before they are published."""

import datetime
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import inflection
import yaml

from note_publisher.core.models import (
    DateMismatch,
    InvalidFilename,
    InvalidFrontmatter,
    InvalidSlug,
    MissingTitle,
    Note,
    ValidationError,
    ValidNote,
)

logger = logging.getLogger(__name__)

# YYYY-MM-DD-<slug>.md; the slug itself is checked separately
FILENAME_PATTERN = re.compile(r'([0-9]{4}-[0-9]{2}-[0-9]{2})-(.*)\.md')

SLUG_PATTERN = re.compile(r'[a-z0-9]+(?:-[a-z0-9]+)*')

# A bare ISO date, optionally followed by a time as Jekyll writes it
DATE_STRING_PATTERN = re.compile(r'([0-9]{4}-[0-9]{2}-[0-9]{2})(?:[ T][^\n]*)?')

# Opening delimiter, then everything up to the first line that is exactly ---
FRONTMATTER_PATTERN = re.compile(r'\A---\n(.*?)^---\n', re.DOTALL | re.MULTILINE)

DEFAULT_RESERVED_SLUGS = frozenset({
    'draft',
    'index',
    'new-note',
    'note',
    'notes',
    'untitled',
})


class NoteValidator:
    """Checks proposed notes against the naming and frontmatter rules."""

    def __init__(self, reserved_slugs: Optional[Iterable[str]] = None):
        """Initialize NoteValidator.

        Args:
            reserved_slugs: Generic slugs that are never accepted
                (default: DEFAULT_RESERVED_SLUGS)
        """
        if reserved_slugs is None:
            reserved_slugs = DEFAULT_RESERVED_SLUGS
        self.reserved_slugs = frozenset(s.lower() for s in reserved_slugs)

    def validate(self, note: Note) -> ValidNote:
        """Validate a note and return its normalized form.

        Checks run in order: filename pattern, slug, date agreement, title.
        The first failing check raises.

        Args:
            note: The proposed note

        Returns:
            ValidNote with normalized tags and frontmatter

        Raises:
            InvalidFilename, InvalidSlug, DateMismatch, MissingTitle
        """
        try:
            return self._validate(note)
        except ValidationError as e:
            logger.debug("Rejected %s: %s", note.filename, e.reason)
            raise

    def _validate(self, note: Note) -> ValidNote:
        filename = note.filename
        match = FILENAME_PATTERN.fullmatch(filename)
        if match is None:
            raise InvalidFilename(filename, "expected YYYY-MM-DD-slug.md")

        try:
            file_date = datetime.datetime.strptime(match.group(1), '%Y-%m-%d').date()
        except ValueError:
            raise InvalidFilename(filename, f"{match.group(1)} is not a calendar date")

        slug = match.group(2)
        self.check_slug(slug, filename)

        fm = note.frontmatter or {}
        raw_date = fm.get('date')
        fm_date = coerce_date(raw_date)
        if fm_date is None:
            if raw_date is None:
                raise DateMismatch(filename, "frontmatter has no date")
            raise DateMismatch(filename, f"unreadable frontmatter date {raw_date!r}")
        if fm_date != file_date:
            raise DateMismatch(
                filename,
                f"frontmatter date {fm_date.isoformat()} does not match "
                f"filename date {file_date.isoformat()}",
            )

        raw_title = fm.get('title')
        title = str(raw_title).strip() if raw_title is not None else ''
        if not title:
            raise MissingTitle(filename, "frontmatter title is missing or blank")

        tags = normalize_tags(fm.get('tags'))

        frontmatter: Dict[str, Any] = {'title': title, 'date': raw_date}
        if tags:
            frontmatter['tags'] = tags
        for key, value in fm.items():
            if key not in ('title', 'date', 'tags'):
                frontmatter[key] = value

        return ValidNote(
            filename=filename,
            slug=slug,
            date=file_date,
            title=title,
            tags=tags,
            body=note.body,
            frontmatter=frontmatter,
        )

    def check_slug(self, slug: str, filename: Optional[str] = None) -> None:
        """Raise InvalidSlug unless ``slug`` is URL-friendly and not reserved."""
        filename = filename or slug
        if not slug:
            raise InvalidSlug(filename, "slug is empty")
        if not SLUG_PATTERN.fullmatch(slug):
            raise InvalidSlug(
                filename,
                f"slug {slug!r} must be lowercase letters, digits and single hyphens",
            )
        if slug in self.reserved_slugs:
            raise InvalidSlug(filename, f"slug {slug!r} is too generic")


def validate_note(note: Note, reserved_slugs: Optional[Iterable[str]] = None) -> ValidNote:
    """Validate ``note`` with a default NoteValidator."""
    return NoteValidator(reserved_slugs).validate(note)


def normalize_tags(tag_data: Any) -> List[str]:
    """Normalize frontmatter tags.

    Handles both list and string formats. Tags are stripped, lowercased
    and deduplicated, keeping first-seen order. Empty tags are dropped.

    Args:
        tag_data: Raw ``tags`` value from frontmatter

    Returns:
        List of tag strings
    """
    if tag_data is None:
        return []
    if isinstance(tag_data, str):
        tag_data = [tag_data]
    elif not isinstance(tag_data, (list, tuple, set, frozenset)):
        tag_data = [tag_data]

    tags: List[str] = []
    for tag in tag_data:
        if tag is None:
            continue
        cleaned = str(tag).strip().lstrip('#').lower()
        if cleaned and cleaned not in tags:
            tags.append(cleaned)
    return tags


def coerce_date(date_value: Any) -> Optional[datetime.date]:
    """Convert various frontmatter date formats to a date.

    Args:
        date_value: Date in various formats (str, datetime, date, None)

    Returns:
        The calendar date, or None if it cannot be read
    """
    if date_value is None:
        return None

    # datetime is a subclass of date, so test it first
    if isinstance(date_value, datetime.datetime):
        return date_value.date()

    if isinstance(date_value, datetime.date):
        return date_value

    if isinstance(date_value, str):
        match = DATE_STRING_PATTERN.fullmatch(date_value.strip())
        if match is None:
            return None
        try:
            return datetime.datetime.strptime(match.group(1), '%Y-%m-%d').date()
        except ValueError:
            return None

    return None


def parse_note(filename: str, text: str) -> Note:
    """Split raw Markdown into frontmatter and body.

    The block ends at the first line consisting of ``---`` alone. Text
    without a complete leading block is all body.

    Args:
        filename: Name the note will be published under
        text: Full file contents

    Returns:
        Note (not yet validated)

    Raises:
        InvalidFrontmatter: if the frontmatter block is not a YAML mapping
    """
    match = FRONTMATTER_PATTERN.match(text)
    if match is None:
        return Note(filename=filename, frontmatter={}, body=text)

    try:
        frontmatter = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise InvalidFrontmatter(filename, f"invalid YAML: {e}") from e

    if frontmatter is None:
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        raise InvalidFrontmatter(filename, "frontmatter is not a mapping")

    return Note(filename=filename, frontmatter=frontmatter, body=text[match.end():])


def load_note(file_path: Union[str, Path]) -> Note:
    """Read a Markdown file from disk into a Note named after the file."""
    path = Path(file_path)
    return parse_note(path.name, path.read_text(encoding='utf-8'))


def suggest_filename(title: str, on_date: datetime.date) -> str:
    """Derive a publishable filename from a title.

    Args:
        title: Human-readable note title
        on_date: Publication date

    Returns:
        Filename of the form YYYY-MM-DD-slug.md

    Raises:
        InvalidSlug: if the title yields no usable slug
    """
    slug = re.sub(r'[-_]+', '-', inflection.parameterize(title)).strip('-')
    if not slug:
        raise InvalidSlug(title, "title produces an empty slug")
    return f"{on_date.strftime('%Y-%m-%d')}-{slug}.md"
