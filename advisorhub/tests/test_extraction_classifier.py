from __future__ import annotations

import pytest

from advisorhub.features.attachments.service import ADMITTED_MIME_TYPES
from advisorhub.features.extraction import classify_file, normalize_content_type
from advisorhub.features.extraction.classifier import file_extension


@pytest.mark.parametrize(
    ("content_type", "filename", "expected"),
    [
        ("image/png", "chart.png", "image"),
        ("IMAGE/JPEG", "photo.jpg", "image"),
        ("application/pdf", "report.pdf", "pdf"),
        ("application/msword", "old.doc", "word"),
        (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "plan.docx",
            "word",
        ),
        ("text/plain; charset=utf-8", "notes.txt", "text"),
        ("application/octet-stream", "notes.md", "text"),
        ("application/octet-stream", "DATA.CSV", "text"),
        ("application/json", "payload", "text"),
        ("application/octet-stream", ".json", "text"),
        ("application/octet-stream", ".CSV", "text"),
        ("audio/mpeg", "call.mp3", "audio"),
        ("application/octet-stream", "memo.m4a", "audio"),
        ("video/mp4", "demo.mp4", "video"),
        ("application/octet-stream", "clip.mkv", "video"),
        ("application/octet-stream", "data.bin", "unsupported"),
        ("", "", "unsupported"),
    ],
)
def test_classify_file(content_type, filename, expected):
    assert classify_file(content_type, filename) == expected


def test_mime_rules_win_over_extension():
    # An image/* MIME beats a text extension because image is checked first.
    assert classify_file("image/png", "notes.txt") == "image"
    assert classify_file("application/pdf", "notes.txt") == "pdf"


def test_every_admitted_mime_type_has_an_extractor():
    unsupported = [
        mime for mime in sorted(ADMITTED_MIME_TYPES) if classify_file(mime, "upload") == "unsupported"
    ]
    assert unsupported == []


def test_normalize_content_type_drops_parameters():
    assert normalize_content_type(" Text/CSV ; charset=UTF-8") == "text/csv"
    assert normalize_content_type(None) == ""


def test_file_extension_reads_dot_only_names():
    assert file_extension(".md") == ".md"
    assert file_extension("reports/.json") == ".json"
    assert file_extension("archive.tar.GZ") == ".gz"
    assert file_extension("README") == ""
    assert file_extension(None) == ""
