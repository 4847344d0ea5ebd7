"""
Block and Signature Helper Tests
================================
Brace-balanced blocks, bracket matching, top-level splitting, parameter
parsing and the ordered rule scanner.
"""

from repo_analyzer.extractors.base import RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import (
    LineIndex,
    extract_block,
    find_calls,
    find_imports,
    find_top_level,
    parse_interface_members,
    parse_parameters,
    read_balanced,
    split_top_level,
)


# ============================================================================
# extract_block / read_balanced
# ============================================================================

class TestExtractBlock:

    def test_nested_braces(self):
        content = "function a() { if (x) { y(); } }\nrest"
        assert extract_block(content, 0) == "function a() { if (x) { y(); } }"

    def test_no_brace_returns_fallback_slice(self):
        assert extract_block("abcdef", 0, fallback_length=2) == "ab"

    def test_unbalanced_runs_to_end_of_file(self):
        assert extract_block("f() { {", 0) == "f() { {"

    def test_scan_ceiling(self):
        content = "f() {" + "x" * 100
        assert len(extract_block(content, 0, max_scan=10)) == len("f() {") + 10

    def test_search_from_skips_earlier_braces(self):
        content = "a = {} ; b { c }"
        assert extract_block(content, 0, search_from=7) == "a = {} ; b { c }"


class TestReadBalanced:

    def test_nested_parens(self):
        assert read_balanced("(a, (b))", 0) == 7

    def test_paren_inside_string_ignored(self):
        assert read_balanced("(')')", 0) == 4

    def test_unclosed(self):
        assert read_balanced("(a", 0) is None

    def test_not_an_opener(self):
        assert read_balanced("abc", 0) is None


# ============================================================================
# Splitting and parameters
# ============================================================================

class TestSplitTopLevel:

    def test_generics_and_arrays_stay_together(self):
        text = "a: Map<string, number>, b = [1, 2], c"
        assert split_top_level(text) == ["a: Map<string, number>", "b = [1, 2]", "c"]

    def test_comments_dropped(self):
        assert split_top_level("a, // note\n b") == ["a", "b"]

    def test_arrow_is_not_a_closer(self):
        assert split_top_level("f: (x) => void, g") == ["f: (x) => void", "g"]

    def test_find_top_level_skips_comparison_operators(self):
        assert find_top_level("a == b", "=") == -1
        assert find_top_level("a = b", "=") == 2


class TestParseParameters:

    def test_types_optional_and_defaults(self):
        params = parse_parameters("id: string, opts?: Options, retries = 3")

        assert [p.name for p in params] == ["id", "opts", "retries"]
        assert params[0].type == "string"
        assert params[0].is_optional is False
        assert params[1].type == "Options"
        assert params[1].is_optional is True
        assert params[2].type is None
        assert params[2].default_value == "3"
        assert params[2].is_optional is True

    def test_constructor_modifiers_stripped(self):
        params = parse_parameters("private readonly repo: UserRepo")
        assert params[0].name == "repo"
        assert params[0].type == "UserRepo"

    def test_empty(self):
        assert parse_parameters("") == ()
        assert parse_parameters(None) == ()

    def test_interface_members(self):
        props = parse_interface_members("id: string; name?: string\n readonly tags: string[]")
        assert [(p.name, p.type, p.is_optional) for p in props] == [
            ("id", "string", False),
            ("name", "string", True),
            ("tags", "string[]", False),
        ]


# ============================================================================
# Calls, imports, line numbers
# ============================================================================

class TestCallsAndImports:

    def test_find_calls_skips_keywords_and_dedupes(self):
        assert find_calls("foo(); if (x) { bar(1); foo(); }") == ("foo", "bar")

    def test_find_imports_in_source_order(self):
        content = "import x from 'a'\nconst y = require(\"b\")\nimport 'c'\n"
        assert find_imports(content) == ("a", "b", "c")

    def test_line_index(self):
        index = LineIndex("a\nb\nc")
        assert index.line_of(0) == 1
        assert index.line_of(2) == 2
        assert index.line_of(4) == 3


class TestScanRules:

    def test_first_declared_rule_wins_at_same_offset(self):
        rules = (RegexMatcher("first", r"^foo"), RegexMatcher("second", r"^foo\w*"))
        spans = scan_rules(rules, "foobar")
        assert [s.rule for s in spans] == ["first"]

    def test_span_inside_accepted_header_dropped(self):
        rules = (RegexMatcher("outer", r"abc"), RegexMatcher("inner", r"bc"))
        assert [s.rule for s in scan_rules(rules, "abc")] == ["outer"]

    def test_spans_sorted_by_position(self):
        rules = (RegexMatcher("b", r"b"), RegexMatcher("a", r"a"))
        assert [s.rule for s in scan_rules(rules, "ab")] == ["a", "b"]
