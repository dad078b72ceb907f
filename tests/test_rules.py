import pytest

from fieldsync.fields.normalize import TextNormalizer, TextOptions
from fieldsync.fields.rules import (
    CompiledRules,
    compile_pattern,
    compile_rules,
    is_delimited_regex,
    keys_match,
    matches,
    validate_pattern,
)


def test_compile_rules_splits_literals_and_patterns() -> None:
    rule_set = compile_rules(["test", "autre", "/regex.*/i", "  ", ""], TextNormalizer())

    assert rule_set.keys == frozenset({"test", "autre"})
    assert len(rule_set.patterns) == 1
    assert len(rule_set) == 3


def test_empty_rule_set_matches_nothing() -> None:
    rules = CompiledRules.build([])
    assert rules.is_empty
    assert rules.matches("anything") is False


@pytest.mark.parametrize(
    "candidate, expected",
    [
        ("TEST", True),
        ("test", True),
        ("ete", True),
        ("été", True),
        ("prefixSomething", True),
        ("PREFIX123", True),
        ("notprefix", False),
        ("valid", False),
    ],
)
def test_rule_matching_folds_case_and_accents(candidate: str, expected: bool) -> None:
    rules = CompiledRules.build(["test", "éTé", "/^prefix.*/i"])
    assert rules.matches(candidate) is expected


def test_case_sensitive_profile_keeps_case() -> None:
    rules = CompiledRules.build(["Title"], TextOptions(lower_case=False, ignore_accents=False))
    assert rules.matches("Title")
    assert not rules.matches("title")


def test_sticky_patterns_match_on_every_call() -> None:
    normalizer = TextNormalizer()
    rule_set = compile_rules(["/ab/y"], normalizer)

    assert all(matches(rule_set, normalizer, "abc") for _ in range(3))
    assert not matches(rule_set, normalizer, "cab")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("/abc/", True),
        ("/abc/gi", True),
        ("/a/b/", True),
        ("abc", False),
        ("/abc/x", False),
        ("/", False),
    ],
)
def test_delimited_regex_grammar(text: str, expected: bool) -> None:
    assert is_delimited_regex(text) is expected


def test_duplicate_flags_are_collapsed() -> None:
    pattern = compile_pattern("/a/gig")
    assert pattern is not None
    assert pattern.flags == "gi"
    assert pattern.replace_all


def test_invalid_regex_is_inert() -> None:
    assert compile_pattern("/(unclosed-group/") is None
    rule_set = compile_rules(["/(unclosed-group/", "kept"], TextNormalizer())
    assert rule_set.patterns == ()
    assert rule_set.keys == frozenset({"kept"})


def test_validate_pattern_rejects_bad_bodies() -> None:
    validate_pattern("literal")
    validate_pattern("/^ok$/i")
    with pytest.raises(ValueError):
        validate_pattern("/[a-/")


def test_named_groups_use_python_syntax() -> None:
    pattern = compile_pattern(r"/(?<year>\d{4})-\k<year>/")
    assert pattern is not None
    match = pattern.regex.search("in 2024-2024")
    assert match is not None
    assert match.group("year") == "2024"


def test_replace_honours_global_flag() -> None:
    assert compile_pattern("/o/g").replace("foo boo", "0") == "f00 b00"
    assert compile_pattern("/o/").replace("foo boo", "0") == "f0o boo"


def test_replace_expands_group_references() -> None:
    pattern = compile_pattern(r"/(\w+)@(\w+)/")
    assert pattern.replace("me@host", "$2 at $1") == "host at me"
    assert pattern.replace("me@host", "[$&]") == "[me@host]"
    assert pattern.replace("me@host", "$$") == "$"


def test_sticky_replace_only_consumes_leading_matches() -> None:
    assert compile_pattern("/a/gy").replace("aab a") == "b a"
    assert compile_pattern("/a/y").replace("aab a") == "ab a"
    assert compile_pattern("/a/gy").replace("baa") == "baa"


def test_remove_all_ignores_the_global_flag() -> None:
    assert compile_pattern("/o/").remove_all("foo boo") == "f b"
    assert compile_pattern("/a/y").remove_all("aab a") == "b a"


@pytest.mark.parametrize(
    "header_key, inline_key, expected",
    [
        ("title", "title", True),
        ("Title", "title", True),
        ("ete", "été", True),
        ("/^tag.*/", "tags", True),
        ("tags", "/^tag/", True),
        ("title", "name", False),
    ],
)
def test_keys_match(header_key: str, inline_key: str, expected: bool) -> None:
    assert keys_match(TextNormalizer(), header_key, inline_key) is expected
