"""Tests for the structural and complexity heuristics."""

from reviewbot_core.analyzers.structural import (
    analyze_structure,
    check_complexity,
    check_function_length,
    check_nesting,
)
from reviewbot_core.models import Category, ChangedFile, Severity


def _file(lines, path="src/app.js", language="javascript"):
    return ChangedFile(path=path, additions=len(lines), deletions=0, language=language, content="\n".join(lines))


def _run(check, lines):
    file = _file(lines)
    return check(file, file.lines)


class TestCheckNesting:
    def test_indentation_over_limit_is_flagged(self):
        [issue] = _run(check_nesting, ["start();", " " * 12 + "deep();"])
        assert issue.line == 2
        assert issue.severity == Severity.MEDIUM
        assert issue.category == Category.QUALITY
        assert issue.title == "Deeply nested code"

    def test_indentation_at_limit_is_fine(self):
        assert _run(check_nesting, [" " * 10 + "ok();"]) == []

    def test_tabs_count_as_whitespace(self):
        assert len(_run(check_nesting, ["\t" * 11 + "deep();"])) == 1

    def test_comment_lines_are_ignored(self):
        lines = [" " * 12 + "// note", " " * 12 + "/* block", " " * 12 + "* continued", " " * 12 + "# python"]
        assert _run(check_nesting, lines) == []


class TestCheckFunctionLength:
    def test_long_function_flagged_at_start_line(self):
        lines = ["// header", "function big() {"] + ["  x++;"] * 55 + ["}"]
        [issue] = _run(check_function_length, lines)
        assert issue.line == 2
        assert issue.title == "Function too long"
        assert "56 lines long" in issue.description

    def test_function_at_limit_is_fine(self):
        lines = ["function ok() {"] + ["  x++;"] * 49 + ["}"]
        assert _run(check_function_length, lines) == []

    def test_arrow_function_is_tracked(self):
        lines = ["const handler = async (req) => {"] + ["  step();"] * 60 + ["};"]
        [issue] = _run(check_function_length, lines)
        assert issue.line == 1

    def test_nested_function_is_measured_with_outer(self):
        lines = (
            ["function outer() {"]
            + ["  a();"] * 10
            + ["  function inner() {"]
            + ["    b();"] * 45
            + ["  }", "}"]
        )
        [issue] = _run(check_function_length, lines)
        assert issue.line == 1

    def test_one_line_function_is_not_tracked(self):
        lines = ["const add = (a, b) => { return a + b; };"] + ["x();"] * 60 + ["}"]
        assert _run(check_function_length, lines) == []

    def test_allman_brace_on_next_line_is_tracked(self):
        lines = ["function handler(req, res)", "{"] + ["  step();"] * 60 + ["}"]
        [issue] = _run(check_function_length, lines)
        assert issue.line == 1
        assert "62 lines long" in issue.description

    def test_multi_line_parameter_list_is_tracked(self):
        lines = ["function handler(req,", "    res) {"] + ["  step();"] * 60 + ["}"]
        [issue] = _run(check_function_length, lines)
        assert issue.line == 1

    def test_statement_ending_in_semicolon_is_not_a_function(self):
        lines = ["const x = (a + b) * c;", "if (x) {"] + ["  step();"] * 60 + ["}"]
        assert _run(check_function_length, lines) == []

    def test_unclosed_function_is_not_reported(self):
        lines = ["function open() {"] + ["  x++;"] * 80
        assert _run(check_function_length, lines) == []


class TestCheckComplexity:
    def test_dense_short_file_is_flagged(self):
        [issue] = _run(check_complexity, ["if (x) y();"] * 11)
        assert issue.line == 1
        assert issue.severity == Severity.HIGH
        assert "11 decision points in 11 lines" in issue.description

    def test_threshold_is_exclusive(self):
        assert _run(check_complexity, ["if (x) y();"] * 10) == []

    def test_issue_anchored_at_window_start(self):
        lines = ["x = 1;"] * 30 + ["if (x) y();"] * 11
        [issue] = _run(check_complexity, lines)
        assert issue.line == 31
        assert "in 11 lines" in issue.description

    def test_windows_do_not_overlap(self):
        lines = ["x = 1;"] * 24 + ["if (x) y();"] * 12 + ["x = 1;"] * 24
        assert _run(check_complexity, lines) == []

    def test_logical_operators_count(self):
        [issue] = _run(check_complexity, ["const v = a ?? b || c && d;"] * 4)
        assert "12 decision points in 4 lines" in issue.description

    def test_keywords_need_word_boundaries(self):
        assert _run(check_complexity, ["const notify = verify(format);"] * 20) == []


class TestAnalyzeStructure:
    def test_runs_all_checks_in_order(self):
        lines = ["function big() {"] + ["  if (a) b();"] * 55 + [" " * 12 + "deep();", "}"]
        issues = analyze_structure([_file(lines)])
        assert [i.title for i in issues] == [
            "Deeply nested code",
            "Function too long",
            "High cyclomatic complexity",
            "High cyclomatic complexity",
        ]

    def test_unknown_language_still_analyzed(self):
        issues = analyze_structure([_file([" " * 12 + "deep"], path="notes.txt", language="unknown")])
        assert len(issues) == 1

    def test_file_without_content_is_skipped(self):
        file = ChangedFile(path="big.js", additions=900, deletions=0, language="javascript")
        assert analyze_structure([file]) == []

    def test_short_clean_file_yields_nothing(self):
        assert analyze_structure([_file(["const a = 1;", "export default a;"])]) == []
