"""
Complexity Analyzer Tests
=========================
Decision-point counting, indentation depth and the long-function /
deep-nesting report.
"""

from repo_analyzer.analyzers.complexity import (
    ComplexityAnalyzer,
    calculate_complexity,
    max_indentation,
)
from repo_analyzer.models import FileInfo, FunctionRecord, SourceFile


def function(name, line_start, line_end, complexity, file_path="a.ts"):
    return FunctionRecord(
        name=name,
        file_path=file_path,
        line_start=line_start,
        line_end=line_end,
        code="",
        complexity=complexity,
    )


def pair(path, content, language="ts", structural=True):
    info = FileInfo(
        path=path,
        language=language,
        structural=structural,
        category="other",
        lines=len(content.splitlines()),
        size_bytes=len(content),
    )
    return SourceFile(path, content), info


class TestCalculateComplexity:

    def test_empty_code_is_one(self):
        assert calculate_complexity("") == 1

    def test_three_ifs_and_logical_and(self):
        code = "if (a) {}\nif (b) {}\nif (c && d) {}"
        assert calculate_complexity(code) == 5

    def test_else_if_counts_both_keywords(self):
        assert calculate_complexity("if (a) {} else if (b) {}") == 4

    def test_ternary_counts(self):
        assert calculate_complexity("return a ? b : c") == 2

    def test_optional_chaining_and_nullish_do_not_count_as_ternary(self):
        assert calculate_complexity("const v = a?.b ?? c") == 1

    def test_loops_and_catch(self):
        code = "for (;;) {} while (x) {} try {} catch (e) {} switch (k) { case 1: break }"
        assert calculate_complexity(code) == 5


class TestMaxIndentation:

    def test_widest_line(self):
        assert max_indentation("a\n        b\n\tc", tab_width=4) == 8

    def test_blank_lines_ignored(self):
        assert max_indentation("a\n                \nb") == 0


class TestComplexityAnalyzer:

    def test_average_and_long_functions(self):
        analyzer = ComplexityAnalyzer(long_function_lines=2, nesting_indent=4)
        functions = [function("big", 1, 10, 3), function("small", 12, 13, 1)]

        report = analyzer.analyze(functions, [])

        assert report.average_complexity == 2.0
        assert report.long_functions == ("a.ts:big",)
        assert report.deeply_nested_files == ()

    def test_long_function_counts_both_end_lines(self):
        analyzer = ComplexityAnalyzer(long_function_lines=100)
        functions = [function("at_cap", 1, 100, 1), function("over_cap", 201, 301, 1)]

        report = analyzer.analyze(functions, [])

        assert report.long_functions == ("a.ts:over_cap",)

    def test_only_structural_files_flagged_for_nesting(self):
        analyzer = ComplexityAnalyzer(nesting_indent=4)
        deep = "a\n          b\n"
        files = [
            pair("src/deep.ts", deep),
            pair("docs/deep.md", deep, language="md", structural=False),
            pair("src/flat.ts", "a\nb\n"),
        ]

        report = analyzer.analyze([], files)

        assert report.deeply_nested_files == ("src/deep.ts",)

    def test_no_functions(self):
        report = ComplexityAnalyzer().analyze([], [])
        assert report.average_complexity == 0.0
        assert report.long_functions == ()

    def test_from_config(self):
        analyzer = ComplexityAnalyzer.from_config({"complexity": {"long_function_lines": 7}})
        assert analyzer.long_function_lines == 7
        assert analyzer.nesting_indent == 24
