"""Tests for image URL resolution."""

from photo_sharing_client.services.images import (
    ImageLocationResolver,
    is_server_generated,
)

UPLOADED = "a1b2c3d4-e5f6-47a8-9abc-1234567890ab.jpg"

resolver = ImageLocationResolver(
    server_base_url="http://api.test",
    static_base_url="http://static.test",
)


def test_uploaded_name_prefers_server_origin() -> None:
    assert is_server_generated(UPLOADED)
    assert resolver.primary_url(UPLOADED) == f"http://api.test/images/{UPLOADED}"
    assert resolver.fallback_url(UPLOADED) == f"http://static.test/images/{UPLOADED}"


def test_seeded_name_prefers_static_assets() -> None:
    assert not is_server_generated("malcolm1.jpg")
    assert resolver.primary_url("malcolm1.jpg") == (
        "http://static.test/images/malcolm1.jpg"
    )
    assert resolver.fallback_url("malcolm1.jpg") == (
        "http://api.test/images/malcolm1.jpg"
    )


def test_load_retries_fallback_once_then_gives_up() -> None:
    load = resolver.load(UPLOADED)
    assert load.url == resolver.primary_url(UPLOADED)
    assert not load.unavailable

    assert load.fail() == resolver.fallback_url(UPLOADED)
    assert load.attempts == 2

    assert load.fail() is None
    assert load.unavailable
    assert load.attempts == 2

    assert load.fail() is None
    assert load.attempts == 2


def test_file_names_are_url_quoted() -> None:
    assert resolver.primary_url("my photo.jpg") == (
        "http://static.test/images/my%20photo.jpg"
    )
