"""
Test Video Grouping

This module tests quality inference and display grouping including:
- Quality suffix parsing
- Upload file name standardisation
- Grouping of uploaded videos by identity
"""

import pytest

from coursehub.features.chapter_upload.grouping import group_videos, parse_video_name, standardized_file_name
from coursehub.features.chapter_upload.models import ExistingResource, PendingFile
from coursehub.shared.models import FileRole, VideoQuality
from tests.conftest import candidate

@pytest.mark.parametrize("file_name,quality,base_name", [
    ("lecture-480p.mp4", VideoQuality.Q480, "lecture"),
    ("lecture.mp4", VideoQuality.Q720, "lecture"),
    ("Week 1_360P.MP4", VideoQuality.Q360, "Week 1"),
    ("lecture-1080p.mp4", VideoQuality.Q720, "lecture-1080p"),
])
def test_parse_video_name(file_name, quality, base_name):
    assert parse_video_name(file_name) == (quality, base_name)

def test_standardized_file_name():
    """Videos without a quality in their name are registered with one"""
    plain = PendingFile(
        id="1", file=candidate("lecture.mp4"), role=FileRole.VIDEO,
        quality=VideoQuality.Q480, base_name="lecture"
    )
    tagged = PendingFile(
        id="2", file=candidate("lecture-360p.mp4"), role=FileRole.VIDEO,
        quality=VideoQuality.Q360, base_name="lecture"
    )
    pdf = PendingFile(id="3", file=candidate("lecture.pdf"), role=FileRole.PDF)

    assert standardized_file_name(plain) == "lecture-480p.mp4"
    assert standardized_file_name(tagged) == "lecture-360p.mp4"
    assert standardized_file_name(pdf) == "lecture.pdf"

def test_group_videos_orders_by_quality():
    """Qualities of one video form one group with 720p as default"""
    resources = [
        ExistingResource(id="a", filename="intro-360p.mp4"),
        ExistingResource(id="b", filename="intro-720p.mp4"),
        ExistingResource(id="c", filename="intro-480p.mp4"),
    ]

    groups = group_videos(resources)

    assert len(groups) == 1
    assert groups[0].base_name == "intro"
    assert [v.quality for v in groups[0].videos] == ["720p", "480p", "360p"]
    assert groups[0].default.id == "b"

def test_group_videos_strips_bare_quality_suffix():
    groups = group_videos([
        ExistingResource(id="a", filename="intro.mp4", quality="720p"),
        ExistingResource(id="b", filename="intro-360.mp4"),
    ])
    assert len(groups) == 1
    assert [v.id for v in groups[0].videos] == ["a", "b"]
    assert groups[0].videos[1].quality == "360p"

def test_group_videos_name_without_extension():
    """A stored name without ".mp4" joins its group under the inferred quality"""
    groups = group_videos([
        ExistingResource(id="a", filename="intro.mp4", quality="720p"),
        ExistingResource(id="b", filename="intro-480p"),
        ExistingResource(id="c", filename="intro-360.mp4"),
    ])
    assert [g.base_name for g in groups] == ["intro"]
    assert [(v.id, v.quality) for v in groups[0].videos] == [("a", "720p"), ("b", "480p"), ("c", "360p")]

def test_group_videos_keeps_identities_apart():
    groups = group_videos([
        ExistingResource(id="a", filename="intro-480p.mp4"),
        ExistingResource(id="b", filename="summary-720p.mp4"),
        ExistingResource(id="c", filename="Intro-720p.mp4"),
    ])
    assert [g.base_name for g in groups] == ["intro", "summary"]
    assert [v.id for v in groups[0].videos] == ["c", "a"]

def test_group_videos_unknown_quality_sorts_last():
    groups = group_videos([
        ExistingResource(id="a", filename="intro-1080p.mp4", quality="1080p"),
        ExistingResource(id="b", filename="intro-1080p-360p.mp4"),
    ])
    assert [v.id for v in groups[0].videos] == ["b", "a"]
