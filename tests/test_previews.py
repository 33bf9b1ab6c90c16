from __future__ import annotations

from bgremover_service.previews import PreviewRegistry


def test_preview_lives_only_inside_its_scope(source_image):
    registry = PreviewRegistry()

    with registry.open(source_image) as url:
        assert url.startswith("/previews/")
        token = url.rsplit("/", 1)[1]
        assert registry.get(token) is source_image
        assert len(registry) == 1

    assert registry.get(token) is None
    assert len(registry) == 0


def test_preview_is_revoked_when_scope_raises(source_image):
    registry = PreviewRegistry(url_prefix="/p/")

    try:
        with registry.open(source_image) as url:
            assert url.startswith("/p/")
            raise KeyError("boom")
    except KeyError:
        pass

    assert len(registry) == 0


def test_each_open_gets_its_own_token(source_image):
    registry = PreviewRegistry()

    with registry.open(source_image) as first, registry.open(source_image) as second:
        assert first != second
        assert len(registry) == 2
