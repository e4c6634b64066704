"""
Secure, versioned file names for stored recipe and collection files.

Stored files are named after an unguessable 32-character hex hash instead of
the recipe name. Replacing a file keeps the hash and bumps a version suffix
so browsers and CDNs never serve a stale copy:

    3f2a...9c.jpg  ->  3f2a...9c_v2.jpg  ->  3f2a...9c_v3.jpg
"""

import re
from typing import Optional

from foodie.core.security import generate_file_hash


MIN_HASH_LENGTH = 8

_HASH_PATTERN = re.compile(r"^([a-f0-9]{8,32})(?:_v(\d+))?$")


def _stem(filename: str) -> str:
    return filename.rsplit(".", 1)[0] if "." in filename else filename


def generate_secure_filename(seed: str, extension: str) -> str:
    """New "<hash>.<ext>" file name."""
    return f"{generate_file_hash(seed)}.{extension.lstrip('.')}"


def extract_base_hash(filename: Optional[str]) -> Optional[str]:
    """
    Base hash of a stored file name, or None for legacy names.

    Example:
        extract_base_hash("0a1b2c3d4e5f_v3.pdf") -> "0a1b2c3d4e5f"
        extract_base_hash("chicken-curry.jpg") -> None
    """
    if not filename:
        return None
    match = _HASH_PATTERN.match(_stem(filename))
    return match.group(1) if match else None


def extract_version(filename: Optional[str]) -> int:
    """Version number of a stored file name (unversioned names are version 1)."""
    if not filename:
        return 0
    match = _HASH_PATTERN.match(_stem(filename))
    if not match:
        return 1
    return int(match.group(2)) if match.group(2) else 1


def generate_versioned_filename(current: Optional[str], extension: str, seed: str = "") -> str:
    """
    Next file name for a replaced upload.

    - No current file, or a legacy (non-hash) name: a fresh hash
    - "<hash>.<ext>": "<hash>_v2.<ext>"
    - "<hash>_vN.<ext>": "<hash>_v{N+1}.<ext>"

    The extension always comes from the new upload, so an image replaced
    with a PNG keeps its hash but changes extension.
    """
    extension = extension.lstrip(".")
    base_hash = extract_base_hash(current)
    if base_hash is None:
        return generate_secure_filename(seed, extension)
    return f"{base_hash}_v{extract_version(current) + 1}.{extension}"
