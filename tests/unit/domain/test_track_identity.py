"""Tests for stable track identifiers."""

import uuid

from localshelf.domain.value_objects import TRACK_NAMESPACE, identify


class TestIdentify:
    """Test identify()."""

    def test_same_path_gives_same_uuid(self):
        assert identify("/music/a.mp3") == identify("/music/a.mp3")

    def test_tags_do_not_change_identity(self):
        path = "/music/a.mp3"
        assert identify(path, {"title": "Old"}) == identify(path, {"title": "New"})
        assert identify(path) == identify(path, {"title": "Old"})

    def test_different_paths_give_different_uuids(self):
        assert identify("/music/a.mp3") != identify("/music/b.mp3")

    def test_result_is_a_uuid5_in_the_track_namespace(self):
        value = identify("/music/a.mp3")
        parsed = uuid.UUID(value)
        assert parsed.version == 5
        assert parsed == uuid.uuid5(TRACK_NAMESPACE, "/music/a.mp3")
