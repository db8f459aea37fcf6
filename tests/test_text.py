import pytest

from gh_issue_viewer.models import CommentView, IssueSummary, format_timestamp
from gh_issue_viewer.text import display_width, pad_display, sanitize_message, split_by_width, truncate


def test_sanitize_collapses_control_characters():
    assert sanitize_message("Bad\r\ncredentials\t(401)\n") == "Bad credentials (401)"
    assert sanitize_message(None) == ""


def test_sanitize_accepts_exceptions():
    assert sanitize_message(RuntimeError("line one\nline two")) == "line one line two"


def test_split_by_width_keeps_every_glyph():
    parts = split_by_width("ab漢cd", 3)
    assert "".join(parts) == "ab漢cd"
    assert all(display_width(p) <= 3 for p in parts)


def test_split_by_width_gives_oversized_glyph_its_own_piece():
    assert split_by_width("漢a", 1) == ["漢", "a"]


def test_truncate_and_pad():
    assert truncate("hello world", 8) == "hello w…"
    assert truncate("short", 10) == "short"
    assert truncate("anything", 0) == ""
    assert pad_display("ab", 5) == "ab   "
    assert display_width(pad_display("漢字漢字", 5)) == 5


def test_format_timestamp():
    assert format_timestamp("2024-05-01T10:20:30Z") == "2024-05-01 10:20"
    assert format_timestamp("yesterday") == "yesterday"
    assert format_timestamp(None) == ""


def test_comment_from_api_defaults_missing_user_to_ghost():
    view = CommentView.from_api({"id": 7, "user": None, "body": None, "created_at": "2024-01-02T03:04:05Z"})
    assert view == CommentView(id=7, author="ghost", created_at="2024-01-02 03:04", body="")


def test_issue_summary_seed_shares_strings():
    summary = IssueSummary.from_api({
        "number": 42,
        "title": "Crash",
        "state": "open",
        "user": {"login": "octocat"},
        "created_at": "2024-05-01T10:20:30Z",
        "body": "It crashes",
        "labels": [{"name": "bug", "color": "D73A4A"}],
        "comments": 2,
    })
    seed = summary.seed()
    assert seed.number == 42
    assert seed.author is summary.author
    assert seed.body == "It crashes"
    assert summary.labels[0].color == "d73a4a"


def test_from_api_tolerates_odd_values():
    view = CommentView.from_api({"id": "12", "created_at": 1700000000, "body": "b"})
    assert view.id == 12
    assert view.created_at == "1700000000"
    with pytest.raises(ValueError):
        CommentView.from_api({"id": "abc"})
    with pytest.raises(ValueError):
        IssueSummary.from_api({"number": True})
