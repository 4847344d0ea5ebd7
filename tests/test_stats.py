"""
Statistics Aggregator Tests
===========================
"""

from repo_analyzer.analyzers.stats import StatsAggregator, count_lines
from repo_analyzer.models import FileInfo, FunctionRecord, SourceFile


def pair(path, content, language="ts"):
    info = FileInfo(
        path=path,
        language=language,
        structural=True,
        category="other",
        lines=len(content.splitlines()),
        size_bytes=len(content.encode()),
    )
    return SourceFile(path, content), info


def function(name, path, line, complexity):
    return FunctionRecord(name=name, file_path=path, line_start=line, line_end=line + 1, code="", complexity=complexity)


class TestCountLines:

    def test_c_style(self):
        assert count_lines("// c\nconst a = 1\n\n/* b */\n", "ts") == (4, 1, 2, 1)

    def test_hash_comments(self):
        assert count_lines("# c\nx = 1\n", "py") == (2, 1, 1, 0)

    def test_empty(self):
        assert count_lines("", "ts") == (0, 0, 0, 0)

    def test_only_line_feeds_end_lines(self):
        assert count_lines('const s = "a\u2028b\x0cc"\nconst t = 1\r\n', "ts") == (2, 2, 0, 0)


class TestStatsAggregator:

    def test_totals_and_languages(self):
        stats = StatsAggregator().aggregate(
            [pair("b.ts", "a\n\nb\n"), pair("a.py", "x = 1\n", "py")],
            functions=[function("f", "b.ts", 1, 1)],
            total_classes=2,
            total_components=3,
            total_routes=4,
        )

        assert stats.total_files == 2
        assert (stats.total_lines, stats.code_lines, stats.blank_lines) == (4, 3, 1)
        assert dict(stats.languages) == {"py": 1, "ts": 1}
        assert list(stats.languages) == ["py", "ts"]
        assert (stats.total_functions, stats.total_classes, stats.total_components, stats.total_routes) == (1, 2, 3, 4)

    def test_largest_files_tie_break_on_path(self):
        stats = StatsAggregator(top_n=2).aggregate([
            pair("c.ts", "1\n"),
            pair("b.ts", "1\n2\n"),
            pair("a.ts", "1\n2\n"),
        ])
        assert [(f.path, f.lines) for f in stats.largest_files] == [("a.ts", 2), ("b.ts", 2)]

    def test_most_complex_functions(self):
        functions = [
            function("low", "a.ts", 1, 1),
            function("high", "b.ts", 5, 9),
            function("tie_late", "a.ts", 20, 4),
            function("tie_early", "a.ts", 3, 4),
        ]
        stats = StatsAggregator(top_n=3).aggregate([], functions=functions)

        assert [f.name for f in stats.most_complex_functions] == ["high", "tie_early", "tie_late"]
        assert stats.most_complex_functions[0].complexity == 9

    def test_empty_input(self):
        stats = StatsAggregator().aggregate([])

        assert stats.total_files == 0
        assert stats.total_lines == 0
        assert dict(stats.languages) == {}
        assert stats.largest_files == ()
        assert stats.most_complex_functions == ()
