from adcapture.metadata import build_artifact_metadata


def test_build_artifact_metadata_includes_optional_fields_when_provided():
    md = build_artifact_metadata(
        creative="banner",
        artifact_kind="animated",
        width=300,
        height=250,
        frame_count=120,
        frame_rate=30,
        sha256="a" * 64,
        phash="b" * 16,
        capture_version="convert:2025",
        rules=("css", "library"),
        source_url="file:///tmp/banner.html",
    )
    assert list(md)[:3] == ["creative", "artifact_kind", "width"]
    assert md["frame_rate"] == "30"
    assert md["rules"] == "css,library"
    assert md["source_url"] == "file:///tmp/banner.html"
    assert md["used_fallback"] == "false"


def test_build_artifact_metadata_omits_optional_fields_when_absent():
    md = build_artifact_metadata(
        creative="banner",
        artifact_kind="static",
        width=300,
        height=250,
        frame_count=1,
        frame_rate=None,
        sha256="c" * 64,
        phash="d" * 16,
        capture_version="convert:2025",
    )
    assert "frame_rate" not in md
    assert "rules" not in md
    assert "source_url" not in md
