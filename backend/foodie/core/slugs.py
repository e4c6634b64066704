"""
URL slug helpers for collections and recipes.
"""

import re
from typing import Optional
from uuid import UUID

from foodie.core.constants import UNTITLED_SLUG


def slugify(text: Optional[str]) -> str:
    """
    Convert a title into a URL slug.

    Lowercases, drops anything that is not a word character, space or
    hyphen, turns whitespace into hyphens and collapses repeated hyphens.

    Example:
        slugify("Mum's Best Curries!") -> "mums-best-curries"
        slugify("!!!") -> "untitled"
    """
    if not text:
        return UNTITLED_SLUG
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug or UNTITLED_SLUG


def slug_path(resource_id: UUID, slug: Optional[str]) -> str:
    """Path segment used in URLs: "<id>-<slug>"."""
    return f"{resource_id}-{slug or UNTITLED_SLUG}"
