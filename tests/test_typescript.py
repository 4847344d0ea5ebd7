"""
Interface and Type Alias Extractor Tests
========================================
"""

import pytest

TYPES_MODULE = """
    export interface User extends Base, Timestamps {
      id: string
      name?: string
      readonly tags: string[];
      onSave: (value: string) => void
    }

    interface Internal { a: number; b: boolean }

    export type Role = 'admin' | 'user'

    type Handler<T> = (event: T) => void

    export type Props = {
      title: string
      count?: number
    }
"""


@pytest.fixture
def ctx(make_context):
    return make_context("src/types/index.ts", TYPES_MODULE)


class TestInterfaces:

    def test_interfaces_found(self, ctx):
        assert [i.name for i in ctx.results("interfaces")] == ["User", "Internal"]

    def test_members_and_heritage(self, ctx):
        user = ctx.results("interfaces")[0]

        assert user.is_exported is True
        assert user.extends == ("Base", "Timestamps")
        assert [(p.name, p.type, p.is_optional) for p in user.properties] == [
            ("id", "string", False),
            ("name", "string", True),
            ("tags", "string[]", False),
            ("onSave", "(value: string) => void", False),
        ]
        assert (user.line_start, user.line_end) == (1, 6)

    def test_single_line_interface(self, ctx):
        internal = ctx.results("interfaces")[1]

        assert internal.is_exported is False
        assert [p.name for p in internal.properties] == ["a", "b"]
        assert internal.line_start == internal.line_end == 8

    def test_property_limit(self, make_context):
        ctx = make_context("src/t.ts", TYPES_MODULE, {"limits": {"max_properties": 2}})
        assert len(ctx.results("interfaces")[0].properties) == 2


class TestTypeAliases:

    def test_aliases_found(self, ctx):
        assert [t.name for t in ctx.results("types")] == ["Role", "Handler", "Props"]

    def test_union_definition(self, ctx):
        role = ctx.results("types")[0]

        assert role.definition == "'admin' | 'user'"
        assert role.is_exported is True
        assert role.line_start == 10

    def test_function_type_definition(self, ctx):
        handler = ctx.results("types")[1]
        assert handler.definition == "(event: T) => void"
        assert handler.is_exported is False

    def test_object_definition_spans_lines(self, ctx):
        props = ctx.results("types")[2]

        assert props.definition.startswith("{")
        assert props.definition.endswith("}")
        assert (props.line_start, props.line_end) == (14, 17)

    def test_multiline_union(self, make_context):
        ctx = make_context("src/status.ts", """
            export type Status =
              | 'active'
              | 'disabled'
            const x = 1
        """)
        [status] = ctx.results("types")

        assert status.definition == "| 'active'\n  | 'disabled'"
        assert status.line_end == 3


def test_typed_extractors_skip_javascript(make_context):
    ctx = make_context("src/a.js", "interface A { a: string }\ntype B = string\n")
    assert ctx.results("interfaces") == []
    assert ctx.results("types") == []
