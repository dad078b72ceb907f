"""Field reconciliation engine: normalization, rules, coercion and decisions."""
from __future__ import annotations

from .cleanup import cleanup_value
from .coerce import CoercionContext, ValueCoercer, coerce_fields, html_to_text
from .decision import FieldChange, ReconcileDecision, apply_decision, decide, fold_duplicates
from .equality import values_equal
from .exclusion import ExclusionRules
from .markdown import DurationOptions, format_duration, parse_markdown_list, rewrite_markdown_links, stringify_link
from .merge import deep_merge
from .normalize import TextNormalizer, TextOptions
from .numbers import convert_to_number, is_numeric_like
from .rules import CompiledRules, RulePattern, RuleSet, compile_pattern, compile_rules, keys_match, matches
from .values import ABSENT, Duration, HtmlFragment, Link, ScriptFragment, ValueKind, Widget

__all__ = [
    "ABSENT",
    "CoercionContext",
    "CompiledRules",
    "Duration",
    "DurationOptions",
    "ExclusionRules",
    "FieldChange",
    "HtmlFragment",
    "Link",
    "ReconcileDecision",
    "RulePattern",
    "RuleSet",
    "ScriptFragment",
    "TextNormalizer",
    "TextOptions",
    "ValueCoercer",
    "ValueKind",
    "Widget",
    "apply_decision",
    "cleanup_value",
    "coerce_fields",
    "compile_pattern",
    "compile_rules",
    "convert_to_number",
    "decide",
    "deep_merge",
    "fold_duplicates",
    "format_duration",
    "html_to_text",
    "is_numeric_like",
    "keys_match",
    "matches",
    "parse_markdown_list",
    "rewrite_markdown_links",
    "stringify_link",
    "values_equal",
]
