from __future__ import annotations

from advisorhub.features.shared.text_sanitize import (
    sanitize_optional_text,
    sanitize_text,
)


def test_sanitize_text_removes_nul_bytes():
    cleaned, stats = sanitize_text("ab\x00cd\x00")
    assert cleaned == "abcd"
    assert stats.nul_removed == 2
    assert stats.surrogates_replaced == 0
    assert stats.changed is True


def test_sanitize_text_replaces_surrogates():
    cleaned, stats = sanitize_text("ok\ud800\udfffdone")
    assert cleaned == "ok\ufffd\ufffddone"
    assert stats.surrogates_replaced == 2
    assert stats.changed is True


def test_sanitize_text_keeps_newlines_and_strips_on_request():
    cleaned_keep, stats = sanitize_text("  a\r\nb \n")
    cleaned_strip, _ = sanitize_text("  a\r\nb \n", strip=True)
    assert cleaned_keep == "  a\r\nb \n"
    assert stats.changed is False
    assert cleaned_strip == "a\r\nb"


def test_sanitize_optional_text_handles_none():
    cleaned, stats = sanitize_optional_text(None, strip=True)
    assert cleaned is None
    assert stats.changed is False
