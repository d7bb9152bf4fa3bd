from datetime import datetime, timezone

from adcapture.storage import (
    canonical_artifact_name,
    canonical_artifact_path,
    fallback_artifact_path,
    timestamp_slug,
    write_artifact,
)

NOW = datetime(2025, 3, 4, 5, 6, 7, 891000, tzinfo=timezone.utc)


def test_timestamp_slug_replaces_separators():
    assert timestamp_slug(NOW) == "2025-03-04T05-06-07-891Z"


def test_timestamp_slug_treats_naive_as_utc():
    assert timestamp_slug(NOW.replace(tzinfo=None)) == "2025-03-04T05-06-07-891Z"


def test_canonical_artifact_name_static_and_animated():
    assert canonical_artifact_name("banner", animated=False, now=NOW) == "banner_static_2025-03-04T05-06-07-891Z.png"
    assert canonical_artifact_name("banner", animated=True, now=NOW) == "banner_animated_2025-03-04T05-06-07-891Z.mp4"


def test_canonical_artifact_path_joins_output_dir(tmp_path):
    path = canonical_artifact_path(tmp_path, "b", animated=True, now=NOW)
    assert path.parent == tmp_path
    assert path.suffix == ".mp4"


def test_fallback_artifact_path_sits_next_to_video(tmp_path):
    video = tmp_path / "b_animated_x.mp4"
    assert fallback_artifact_path(video) == tmp_path / "b_animated_x_fallback.png"


def test_write_artifact_creates_parents(tmp_path):
    out = write_artifact(tmp_path / "nested" / "a.png", b"data", kind="static")
    assert out.read_bytes() == b"data"
