"""Tests for versioned storage file names."""

from foodie.services.file_naming import (
    extract_base_hash,
    extract_version,
    generate_secure_filename,
    generate_versioned_filename,
)


def test_secure_filename_is_hash_with_extension():
    name = generate_secure_filename("chicken curry", ".jpg")
    stem, ext = name.rsplit(".", 1)
    assert ext == "jpg"
    assert len(stem) == 32
    assert all(c in "0123456789abcdef" for c in stem)


def test_secure_filenames_are_unique():
    assert generate_secure_filename("same", "pdf") != generate_secure_filename("same", "pdf")


def test_extract_base_hash():
    assert extract_base_hash("0a1b2c3d4e5f_v3.pdf") == "0a1b2c3d4e5f"
    assert extract_base_hash("0a1b2c3d4e5f.jpg") == "0a1b2c3d4e5f"
    assert extract_base_hash("chicken-curry.jpg") is None
    assert extract_base_hash(None) is None


def test_extract_version():
    assert extract_version("0a1b2c3d4e5f.jpg") == 1
    assert extract_version("0a1b2c3d4e5f_v7.jpg") == 7
    assert extract_version("legacy-name.jpg") == 1
    assert extract_version(None) == 0


def test_versioned_filename_bumps_version_and_keeps_hash():
    assert generate_versioned_filename("0a1b2c3d4e5f.jpg", "jpg") == "0a1b2c3d4e5f_v2.jpg"
    assert generate_versioned_filename("0a1b2c3d4e5f_v2.jpg", "png") == "0a1b2c3d4e5f_v3.png"


def test_versioned_filename_for_legacy_or_missing_file_is_fresh():
    fresh = generate_versioned_filename("chicken-curry.jpg", "jpg")
    assert extract_base_hash(fresh) is not None
    assert extract_version(fresh) == 1
    assert extract_version(generate_versioned_filename(None, "pdf")) == 1
