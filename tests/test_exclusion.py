import pytest

from fieldsync.fields.exclusion import ExclusionRules


@pytest.mark.parametrize(
    "document, expected",
    [
        ("templates/daily.md", True),
        ("notes/Archive/old.md", True),
        ("notes/draft-1.md", True),
        ("notes/today.md", False),
    ],
)
def test_excluded_by_path(document: str, expected: bool) -> None:
    rules = ExclusionRules.build(["templates/", "/archive/i", r"/draft-\d+/"])
    assert rules.is_excluded(document) is expected


@pytest.mark.parametrize("flag, expected", [(True, True), ("true", True), (False, False), ("yes", False)])
def test_excluded_by_header_flag(flag, expected: bool) -> None:
    rules = ExclusionRules.build([], header_key="fieldsync_ignore")
    assert rules.is_excluded("note.md", {"fieldsync_ignore": flag}) is expected


def test_missing_header_is_not_excluded() -> None:
    rules = ExclusionRules.build([])
    assert not rules.is_excluded("note.md", None)
    assert not rules.is_excluded("note.md", {})


def test_invalid_regex_path_is_ignored() -> None:
    rules = ExclusionRules.build(["/(broken/"])
    assert not rules.is_excluded("(broken/note.md")
