"""Transform factories applied while building payloads."""

from note_publisher.transforms.frontmatter import (
    FrontmatterTransform,
    identity,
    jekyll_frontmatter,
    prune_and_add,
)

__all__ = [
    "FrontmatterTransform",
    "identity",
    "jekyll_frontmatter",
    "prune_and_add",
]
