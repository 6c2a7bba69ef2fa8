"""Frontmatter transform factories for Note Publisher.

These factories create transform functions that reshape a validated
note's frontmatter before it is serialized into the payload.
"""

import titlecase as tc
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from note_publisher.core.models import ValidNote

FrontmatterTransform = Callable[[Dict[str, Any], "ValidNote"], Dict[str, Any]]


def identity() -> FrontmatterTransform:
    """Create a pass-through transform that returns frontmatter unchanged.

    Returns:
        A transform function (frontmatter, note) -> frontmatter
    """
    def transform(fm: Dict[str, Any], note: "ValidNote") -> Dict[str, Any]:
        return fm.copy()
    return transform


def prune_and_add(
    keep_keys: Optional[List[str]] = None,
    remove_keys: Optional[List[str]] = None,
    add_fields: Optional[Dict[str, Any]] = None
) -> FrontmatterTransform:
    """Create a transform that prunes keys and/or adds fields.

    If keep_keys is provided, only those keys are kept.
    If remove_keys is provided (and keep_keys is not), those keys are removed.
    add_fields are always added/updated at the end.

    ``title`` and ``date`` are never pruned: the site generator needs both.

    Args:
        keep_keys: List of keys to keep (exclusive with remove_keys)
        remove_keys: List of keys to remove
        add_fields: Dict of fields to add/update

    Returns:
        A transform function
    """
    required = ('title', 'date')

    def transform(fm: Dict[str, Any], note: "ValidNote") -> Dict[str, Any]:
        if keep_keys is not None:
            result = {k: v for k, v in fm.items() if k in keep_keys or k in required}
        elif remove_keys is not None:
            result = {k: v for k, v in fm.items() if k not in remove_keys or k in required}
        else:
            result = fm.copy()

        if add_fields:
            result.update(add_fields)

        return result
    return transform


def jekyll_frontmatter(
    layout: Optional[str] = "post",
    author: Optional[str] = None,
    title_case: bool = False,
) -> FrontmatterTransform:
    """Create a transform that produces Jekyll post frontmatter.

    Output includes: layout (optional), title, date, author (optional), tags,
    then any remaining keys from the note. With title_case the title is
    converted using the titlecase library.

    Args:
        layout: Jekyll layout name, or None to omit
        author: Author name to include in frontmatter
        title_case: Whether to title-case the title

    Returns:
        A transform function for Jekyll frontmatter
    """
    def transform(fm: Dict[str, Any], note: "ValidNote") -> Dict[str, Any]:
        title = tc.titlecase(note.title) if title_case else note.title
        result: Dict[str, Any] = {}
        if layout:
            result['layout'] = layout
        result['title'] = title
        result['date'] = fm.get('date', note.date)
        if author:
            result['author'] = author
        if note.tags:
            result['tags'] = list(note.tags)
        for key, value in fm.items():
            if key not in result:
                result[key] = value
        return result
    return transform
