"""
Analyzer Tests
==============
End-to-end behaviour of Analyzer.analyze: assembly, determinism, error
isolation, cross-referencing and the immutable result.

Covers:
  - Empty input
  - Repeated and shuffled runs
  - Thread pool vs. sequential runs
  - A failing extractor recorded in errors without losing other kinds
  - Malformed manifests and line-separator characters in literals
  - A small Next.js repository
"""

import dataclasses
import json

import pytest

from repo_analyzer import analyze
from repo_analyzer.analyzer import Analyzer, cross_reference
from repo_analyzer.extractors.classes import ClassExtractor
from repo_analyzer.models import FunctionRecord, SourceFile


@pytest.fixture
def mini_repo(make_source):
    return [
        make_source("package.json", json.dumps({
            "dependencies": {"next": "14.0.0"},
            "devDependencies": {"typescript": "^5.0.0"},
        })),
        make_source("tsconfig.json", "{}"),
        make_source("app/api/users/route.ts", """
            import { NextResponse } from 'next/server'

            export async function GET() {
              const url = process.env.DATABASE_URL
              return NextResponse.json({ url })
            }
        """),
        make_source(".env.example", "DATABASE_URL=\n"),
        make_source("src/services/user.service.ts", """
            export class UserService {
              async findAll() {
                return db.user.findMany()
              }
            }
        """),
    ]


# ============================================================================
# Empty input and result shape
# ============================================================================

class TestEmptyInput:

    def test_zeros(self, analyzer):
        analysis = analyzer.analyze([])

        assert analysis.files == ()
        assert analysis.functions == ()
        assert analysis.security_score == 100
        assert analysis.quality_score == 100
        assert analysis.patterns == ()
        assert analysis.stats.total_files == 0
        assert analysis.errors == ()

    def test_result_is_json_serializable(self, analyzer, mini_repo):
        data = analyzer.analyze(mini_repo).to_dict()
        decoded = json.loads(json.dumps(data))

        assert decoded["api_routes"][0]["method"] == "GET"
        assert decoded["security_summary"]["by_severity"]["medium"] == 1


class TestImmutability:

    def test_frozen_record(self, analyzer):
        analysis = analyzer.analyze([])
        with pytest.raises(dataclasses.FrozenInstanceError):
            analysis.security_score = 0

    def test_read_only_mappings(self, analyzer):
        analysis = analyzer.analyze([])
        with pytest.raises(TypeError):
            analysis.stats.languages["ts"] = 1


# ============================================================================
# Determinism
# ============================================================================

class TestDeterminism:

    def test_repeated_runs_equal(self, analyzer, mini_repo):
        assert analyzer.analyze(mini_repo).to_dict() == analyzer.analyze(mini_repo).to_dict()

    def test_input_order_does_not_change_stats(self, analyzer, mini_repo):
        forward = analyzer.analyze(mini_repo)
        backward = analyzer.analyze(list(reversed(mini_repo)))

        assert forward.stats.to_dict() == backward.stats.to_dict()
        assert forward.security_score == backward.security_score
        assert forward.quality_score == backward.quality_score
        assert forward.patterns == backward.patterns

    def test_thread_pool_matches_sequential(self, mini_repo):
        sequential = Analyzer(workers=1).analyze(mini_repo)
        pooled = Analyzer(workers=4).analyze(mini_repo)

        assert pooled.to_dict() == sequential.to_dict()

    def test_separate_calls_share_no_state(self, analyzer, make_source):
        first = analyzer.analyze([make_source("src/a.ts", "function a() {}\n")])
        second = analyzer.analyze([make_source("src/b.ts", "function b() {}\n")])

        assert [f.name for f in first.functions] == ["a"]
        assert [f.name for f in second.functions] == ["b"]


# ============================================================================
# Error isolation
# ============================================================================

class TestErrorIsolation:

    def test_failing_extractor_recorded(self, analyzer, make_source, monkeypatch):
        def boom(self, ctx):
            raise RuntimeError("boom")

        monkeypatch.setattr(ClassExtractor, "extract", boom)
        analysis = analyzer.analyze([make_source("src/utils/math.ts", """
            export function double(x: number) {
              return x * 2
            }

            class Unused {}
        """)])

        assert [(e.file_path, e.extractor, e.message) for e in analysis.errors] == [
            ("src/utils/math.ts", "classes", "boom"),
        ]
        assert analysis.classes == ()
        assert [f.name for f in analysis.functions] == ["double"]
        assert [u.name for u in analysis.utilities] == ["math"]

    @pytest.mark.parametrize("path,content", [
        ("pyproject.toml", 'project = "not-a-table"\n'),
        ("pyproject.toml", "[tool]\npoetry = 1\n"),
        ("package.json", "[" * 100000 + "]" * 100000),
    ])
    def test_malformed_manifest_does_not_fail_analysis(self, analyzer, path, content):
        analysis = analyzer.analyze([
            SourceFile(path, content),
            SourceFile("src/a.ts", "function a() {}\n"),
        ])

        assert analysis.dependencies == ()
        assert analysis.dev_dependencies == ()
        assert [f.name for f in analysis.functions] == ["a"]


# ============================================================================
# Line numbering
# ============================================================================

class TestLineNumbering:

    SOURCE = 'const sep = "a\u2028b"\nexport function f() {\n  const JWT_SECRET = "abcdef0123456789ABCDEF"\n}\n'

    def test_unicode_line_separator_inside_literal(self, analyzer):
        analysis = analyzer.analyze([SourceFile("src/sep.ts", self.SOURCE)])

        [secret] = [i for i in analysis.security_issues if i.rule_id == "SEC001"]
        assert secret.line == 3
        assert [(f.name, f.line_start) for f in analysis.functions] == [("f", 2)]
        assert analysis.stats.total_lines == 4
        assert analysis.files[0].lines == 4


# ============================================================================
# Cross-referencing
# ============================================================================

class TestCrossReference:

    SOURCE = "function a() { b() }\nfunction b() { b() }\n"

    def test_called_by_filled(self, analyzer, make_source):
        a, b = analyzer.analyze([make_source("src/calls.ts", self.SOURCE)]).functions

        assert a.calls_to == ("b",)
        assert a.called_by == ()
        assert b.called_by == ("a",)

    def test_disabled(self, make_source):
        analysis = Analyzer({"cross_reference": False}, workers=1).analyze([make_source("src/calls.ts", self.SOURCE)])
        assert all(f.called_by == () for f in analysis.functions)

    def test_callers_sorted_and_deduplicated(self):
        def record(name, calls):
            return FunctionRecord(name=name, file_path="x.ts", line_start=1, line_end=1, code="", calls_to=calls)

        functions = cross_reference([record("z", ("t",)), record("m", ("t",)), record("t", ())])
        assert functions[2].called_by == ("m", "z")


# ============================================================================
# Assembly
# ============================================================================

class TestAssembly:

    def test_prisma_schema_models(self, analyzer, make_source):
        analysis = analyzer.analyze([make_source("prisma/schema.prisma", """
            model User {
              id    Int    @id
              posts Post[]
            }

            model Post {
              id Int @id
            }
        """)])

        assert [m.name for m in analysis.models] == ["User", "Post"]
        assert analysis.security_issues == ()
        assert analysis.patterns == ("Prisma ORM",)

    def test_mini_repository(self, analyzer, mini_repo):
        analysis = analyzer.analyze(mini_repo)

        assert [(r.method, r.path, r.is_protected) for r in analysis.api_routes] == [("GET", "/api/users", False)]
        assert [s.name for s in analysis.services] == ["UserService"]

        [env] = analysis.env_vars
        assert env.name == "DATABASE_URL"
        assert env.used_in == ("app/api/users/route.ts",)
        assert env.declared_in == (".env.example",)
        assert env.is_required is True

        assert [(d.name, d.version) for d in analysis.dependencies] == [("next", "14.0.0")]
        assert [(d.name, d.version) for d in analysis.dev_dependencies] == [("typescript", "^5.0.0")]
        assert [c.name for c in analysis.config_files] == ["package.json", "tsconfig.json", ".env.example"]

        assert [i.rule_id for i in analysis.security_issues] == ["SEC020"]
        assert analysis.security_score == 95
        assert analysis.security_summary.grade == "A"
        assert {"Next.js", "TypeScript", "Service Layer"} <= set(analysis.patterns)
        assert analysis.stats.total_files == 5
        assert analysis.errors == ()

    def test_module_level_analyze(self):
        analysis = analyze([SourceFile("src/a.ts", "console.log(1)\n")])
        assert [i.rule_id for i in analysis.security_issues] == ["SEC022"]

    def test_module_level_analyze_with_config(self):
        analysis = analyze(
            [SourceFile("src/a.ts", "console.log(1)\n")],
            config={"security": {"disabled_rules": ["SEC022"]}},
        )
        assert analysis.security_issues == ()
