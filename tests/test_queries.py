from fieldsync.settings import QueryModes
from fieldsync.sync.queries import QuerySubstituter, contains_query


class RecordingEvaluator:
    def __init__(self, results=None, error=None) -> None:
        self.calls = []
        self._results = results or {}
        self._error = error

    def evaluate(self, expression, mode, document, siblings):
        self.calls.append((expression, mode, document, dict(siblings)))
        if self._error is not None:
            raise self._error
        return self._results.get(expression, expression.upper())


def test_contains_query() -> None:
    assert contains_query("total: `=this.a + 1`")
    assert contains_query("`$=dv.current().a`")
    assert not contains_query("plain `code` only")


def test_dql_and_js_fragments_are_evaluated() -> None:
    evaluator = RecordingEvaluator(results={"this.a": "1", "dv.current().b": "2"})
    substitute = QuerySubstituter(evaluator, "note.md", QueryModes())

    result = substitute("a=`=this.a` b=`$=dv.current().b`", {"a": 1})

    assert result == "a=1 b=2"
    assert ("dv.current().b", "djs", "note.md", {"a": 1}) in evaluator.calls
    assert ("this.a", "dql", "note.md", {"a": 1}) in evaluator.calls


def test_disabled_modes_keep_fragments() -> None:
    evaluator = RecordingEvaluator()
    substitute = QuerySubstituter(evaluator, "note.md", QueryModes(dql=False, djs=False))

    assert substitute("`=x`", {}) == "`=x`"
    assert evaluator.calls == []


def test_failed_evaluation_keeps_fragment() -> None:
    substitute = QuerySubstituter(RecordingEvaluator(error=RuntimeError("boom")), "note.md", QueryModes())
    assert substitute("value `=broken`", {}) == "value `=broken`"


def test_error_marker_keeps_fragment() -> None:
    evaluator = RecordingEvaluator(results={"bad": "Dataview (for inline query 'bad'): parse error"})
    substitute = QuerySubstituter(evaluator, "note.md", QueryModes())
    assert substitute("`=bad`", {}) == "`=bad`"


def test_without_evaluator_text_is_unchanged() -> None:
    assert QuerySubstituter(None, "note.md", QueryModes())("`=x`", {}) == "`=x`"
