"""Compile user rules (literal keys or ``/regex/flags``) and match against them."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Optional, Tuple

from .normalize import TextNormalizer, TextOptions

__all__ = [
    "RulePattern",
    "RuleSet",
    "CompiledRules",
    "EMPTY_RULE_SET",
    "compile_pattern",
    "compile_rules",
    "is_delimited_regex",
    "keys_match",
    "matches",
    "validate_pattern",
]

LOGGER = logging.getLogger(__name__)

_DELIMITED = re.compile(r"^/(?P<body>.+)/(?P<flags>[gmiyuvsd]*)$", re.DOTALL)
_NAMED_GROUP = re.compile(r"\(\?<(?![=!])")
_NAMED_BACKREF = re.compile(r"\\k<([A-Za-z_][A-Za-z0-9_]*)>")
_FLAG_MAP = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
_REPLACEMENT_TOKEN = re.compile(r"\$\$|\$&|\$<(?P<name>[A-Za-z_][A-Za-z0-9_]*)>|\$(?P<index>\d{1,2})")


@dataclass(frozen=True)
class RulePattern:
    """A compiled ``/body/flags`` rule.

    ``replace_all`` and ``sticky`` carry the ``g`` and ``y`` flags, which have
    no equivalent among Python's compile flags.
    """

    source: str
    regex: re.Pattern[str]
    flags: str = ""

    @property
    def replace_all(self) -> bool:
        return "g" in self.flags

    @property
    def sticky(self) -> bool:
        return "y" in self.flags

    def test(self, candidate: str) -> bool:
        """Return ``True`` when the pattern matches ``candidate``.

        Sticky patterns only match at the start of the string, on every call.
        """

        if self.sticky:
            return self.regex.match(candidate) is not None
        return self.regex.search(candidate) is not None

    def replace(self, text: str, replacement: str = "") -> str:
        """Replace the first match, or every match when ``g`` is set.

        ``replacement`` uses the ``$1`` / ``$<name>`` / ``$&`` template syntax
        of the configuration files.
        """

        return self._substitute(text, _translate_replacement(replacement), self.replace_all)

    def _substitute(self, text: str, template: str, every: bool) -> str:
        if not self.sticky:
            return self.regex.sub(template, text, count=0 if every else 1)

        # Sticky matches are contiguous from the start of the string.
        position = 0
        pieces: list[str] = []
        while True:
            match = self.regex.match(text, position)
            if match is None or match.end() == position:
                break
            pieces.append(match.expand(template))
            position = match.end()
            if not every:
                break
        return "".join(pieces) + text[position:]

    def remove_all(self, text: str) -> str:
        """Delete every match regardless of ``g``; sticky rules stay anchored at the start."""

        return self._substitute(text, "", True)


@dataclass(frozen=True)
class RuleSet:
    """Literal keys (already normalized) plus compiled patterns."""

    keys: frozenset[str] = field(default_factory=frozenset)
    patterns: Tuple[RulePattern, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.keys and not self.patterns

    def __len__(self) -> int:
        return len(self.keys) + len(self.patterns)


EMPTY_RULE_SET = RuleSet()


def _parse_delimited(text: str) -> Optional[Tuple[str, str]]:
    match = _DELIMITED.match(text)
    if match is None:
        return None
    flags = "".join(dict.fromkeys(match.group("flags")))
    return match.group("body"), flags


def _translate_replacement(replacement: str) -> str:
    if not replacement:
        return ""
    escaped = replacement.replace("\\", "\\\\")
    return _REPLACEMENT_TOKEN.sub(_replacement_token, escaped)


def _replacement_token(match: re.Match[str]) -> str:
    token = match.group(0)
    if token == "$$":
        return "$"
    if token == "$&":
        return r"\g<0>"
    name = match.group("name") or match.group("index")
    return rf"\g<{name}>"


def _translate_body(body: str) -> str:
    body = _NAMED_GROUP.sub("(?P<", body)
    return _NAMED_BACKREF.sub(r"(?P=\1)", body)


def _build(text: str, body: str, flags: str) -> RulePattern:
    compile_flags = 0
    for flag in flags:
        compile_flags |= _FLAG_MAP.get(flag, 0)
    regex = re.compile(_translate_body(body), compile_flags)
    return RulePattern(source=text, regex=regex, flags=flags)


def is_delimited_regex(text: str) -> bool:
    """Return ``True`` when ``text`` is written in the ``/body/flags`` form."""

    return _parse_delimited(text) is not None


def validate_pattern(text: str) -> None:
    """Raise ``ValueError`` when ``text`` is a delimited regex that does not compile."""

    parsed = _parse_delimited(text)
    if parsed is None:
        return
    body, flags = parsed
    try:
        _build(text, body, flags)
    except re.error as exc:
        raise ValueError(f"Invalid regular expression {text!r}: {exc}") from exc


@lru_cache(maxsize=1024)
def compile_pattern(text: str) -> Optional[RulePattern]:
    """Compile ``text`` when it is a delimited regex.

    Returns ``None`` for plain literals and for bodies that fail to compile;
    the latter are reported once and otherwise ignored.
    """

    parsed = _parse_delimited(text)
    if parsed is None:
        return None
    body, flags = parsed
    try:
        return _build(text, body, flags)
    except re.error as exc:
        LOGGER.warning("rules.invalid_regex", extra={"pattern": text, "error": str(exc)})
        return None


def compile_rules(patterns: Iterable[str], normalizer: TextNormalizer) -> RuleSet:
    """Split ``patterns`` into normalized literal keys and compiled regexes."""

    keys: set[str] = set()
    compiled: list[RulePattern] = []
    for raw in patterns:
        text = raw.strip()
        if not text:
            continue
        if is_delimited_regex(text):
            pattern = compile_pattern(text)
            if pattern is not None:
                compiled.append(pattern)
            continue
        keys.add(normalizer.normalize(text))
    return RuleSet(keys=frozenset(keys), patterns=tuple(compiled))


def matches(rule_set: RuleSet, normalizer: TextNormalizer, candidate: str) -> bool:
    """Return ``True`` when ``candidate`` is covered by ``rule_set``."""

    if rule_set.is_empty:
        return False
    processed = normalizer.normalize(candidate)
    if processed in rule_set.keys:
        return True
    return any(pattern.test(processed) for pattern in rule_set.patterns)


def keys_match(normalizer: TextNormalizer, header_key: str, inline_key: str) -> bool:
    """Return ``True`` when two keys designate the same field."""

    if header_key == inline_key:
        return True
    if normalizer.normalize(header_key) == normalizer.normalize(inline_key):
        return True
    if "/" in header_key:
        pattern = compile_pattern(header_key)
        if pattern is not None and pattern.test(inline_key):
            return True
    if "/" in inline_key:
        pattern = compile_pattern(inline_key)
        if pattern is not None and pattern.test(header_key):
            return True
    return False


@dataclass(frozen=True)
class CompiledRules:
    """A :class:`RuleSet` bound to the normalizer it was compiled with."""

    rule_set: RuleSet
    normalizer: TextNormalizer

    @classmethod
    def build(cls, patterns: Iterable[str], options: TextOptions | None = None) -> "CompiledRules":
        normalizer = TextNormalizer(options)
        return cls(rule_set=compile_rules(patterns, normalizer), normalizer=normalizer)

    @classmethod
    def empty(cls, options: TextOptions | None = None) -> "CompiledRules":
        return cls(rule_set=EMPTY_RULE_SET, normalizer=TextNormalizer(options))

    @property
    def is_empty(self) -> bool:
        return self.rule_set.is_empty

    def matches(self, candidate: str) -> bool:
        return matches(self.rule_set, self.normalizer, candidate)
