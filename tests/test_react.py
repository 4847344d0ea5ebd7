"""
React Hook and Component Extractor Tests
========================================
"""

import pytest

HOOKS = """
    import { useState, useEffect, useCallback } from 'react'

    export function useAuth() {
      const [user, setUser] = useState(null)
      useEffect(() => {
        fetchUser().then(setUser)
      }, [])
      return user
    }

    export const useToggle = (initial = false) => {
      const [on, setOn] = useState(initial)
      const toggle = useCallback(() => setOn(v => !v), [])
      return [on, toggle]
    }

    function useInternal() {}
"""

COMPONENTS = """
    'use client'

    import { useState } from 'react'

    interface ButtonProps {
      label: string
      onClick?: () => void
      variant?: 'primary' | 'secondary'
    }

    export function Button({ label, onClick, variant = 'primary' }: ButtonProps) {
      const [pressed, setPressed] = useState(false)
      const theme = useTheme()
      return <button onClick={onClick}>{label}</button>
    }

    export const Card: React.FC<CardProps> = ({ title, children }) => {
      return <div>{title}{children}</div>
    }

    type CardProps = { title: string; children?: React.ReactNode }

    export default function Page() {
      return <main />
    }
"""


class TestHooks:

    def test_exported_hooks_only(self, make_context):
        hooks = make_context("src/hooks/useAuth.ts", HOOKS).results("hooks")
        assert [h.name for h in hooks] == ["useAuth", "useToggle"]

    def test_builtin_dependencies(self, make_context):
        use_auth, use_toggle = make_context("src/hooks/useAuth.ts", HOOKS).results("hooks")

        assert use_auth.dependencies == ("useState", "useEffect")
        assert use_toggle.dependencies == ("useState", "useCallback")
        assert (use_auth.line_start, use_auth.line_end) == (3, 9)


class TestComponents:

    @pytest.fixture
    def components(self, make_context):
        return make_context("src/components/Button.tsx", COMPONENTS).results("components")

    def test_components_found(self, components):
        assert [c.name for c in components] == ["Button", "Card", "Page"]

    def test_props_from_interface(self, components):
        button = components[0]

        assert [(p.name, p.type, p.is_optional) for p in button.props] == [
            ("label", "string", False),
            ("onClick", "() => void", True),
            ("variant", "'primary' | 'secondary'", True),
        ]

    def test_props_from_fc_annotation_and_type_alias(self, components):
        card = components[1]

        assert [(p.name, p.type, p.is_optional) for p in card.props] == [
            ("title", "string", False),
            ("children", "React.ReactNode", True),
        ]

    def test_hooks_and_client_directive(self, components):
        button, card, page = components

        assert button.hooks == ("useState", "useTheme")
        assert page.hooks == ()
        assert page.props == ()
        assert all(c.is_client_component for c in components)

    def test_destructured_without_type(self, make_context):
        [avatar] = make_context("src/Avatar.jsx", """
            export function Avatar({ src, size = 32, ...rest }) {
              return <img src={src} width={size} />
            }
        """).results("components")

        assert [(p.name, p.type, p.is_optional) for p in avatar.props] == [
            ("src", None, False),
            ("size", None, True),
        ]
        assert avatar.is_client_component is False

    def test_inline_object_type(self, make_context):
        [badge] = make_context("src/Badge.tsx", """
            export const Badge = (props: { text: string; tone?: string }) => <span>{props.text}</span>
        """).results("components")

        assert [(p.name, p.is_optional) for p in badge.props] == [("text", False), ("tone", True)]

    def test_plain_typescript_file_skipped(self, make_context):
        assert make_context("src/Button.ts", COMPONENTS).results("components") == []
