"""
Architecture Layer Extractor Tests
==================================
Services, controllers, middleware and utility modules.
"""


class TestServices:

    def test_service_class(self, make_context):
        ctx = make_context("src/services/user.service.ts", """
            import { prisma } from '../lib/prisma'
            import axios from 'axios'

            export class UserService {
              async getUser(id: string) {
                return prisma.user.findUnique({ where: { id } })
              }
            }

            export function helper() {}
        """)
        [service] = ctx.results("services")

        assert service.name == "UserService"
        assert [m.name for m in service.methods] == ["helper", "getUser"]
        assert service.dependencies == ("../lib/prisma", "axios")

    def test_service_without_class_uses_file_name(self, make_context):
        ctx = make_context("src/billing.service.ts", "export const charge = async (amount) => amount\n")
        [service] = ctx.results("services")

        assert service.name == "billing.service"
        assert [m.name for m in service.methods] == ["charge"]

    def test_other_paths_ignored(self, make_context):
        assert make_context("src/user.ts", "export class User {}\n").results("services") == []


class TestControllers:

    def test_controller_reuses_routes(self, make_context):
        ctx = make_context("src/controllers/users.controller.ts", """
            import { Router } from 'express'
            const router = Router()

            router.get('/users', listUsers)

            export function listUsers(req, res) {
              res.json([])
            }
        """)
        [controller] = ctx.results("controllers")

        assert controller.name == "users.controller"
        assert [(r.method, r.path) for r in controller.routes] == [("GET", "/users")]
        assert [m.name for m in controller.methods] == ["listUsers"]


class TestMiddlewares:

    def test_next_middleware_with_matcher(self, make_context):
        ctx = make_context("middleware.ts", """
            import { NextResponse } from 'next/server'

            export function middleware(request) {
              return NextResponse.next()
            }

            export const config = {
              matcher: ['/dashboard/:path*', '/api/:path*'],
            }
        """)
        [middleware] = ctx.results("middlewares")

        assert middleware.name == "middleware"
        assert middleware.applies_to == "['/dashboard/:path*', '/api/:path*']"
        assert (middleware.line_start, middleware.line_end) == (3, 5)

    def test_express_middleware_const(self, make_context):
        ctx = make_context("src/middleware/auth.ts", """
            export const requireLogin = (req, res, next) => {
              if (!req.user) return res.status(401).end()
              next()
            }
        """)
        [middleware] = ctx.results("middlewares")

        assert middleware.name == "requireLogin"
        assert middleware.applies_to is None
        assert middleware.line_end == 4


class TestUtilities:

    def test_utility_module(self, make_context):
        ctx = make_context("src/utils/format.ts", """
            export function formatDate(d) {
              return d.toISOString()
            }

            export const noop = () => {}
        """)
        [utility] = ctx.results("utilities")

        assert utility.name == "format"
        assert [f.name for f in utility.functions] == ["formatDate", "noop"]

    def test_module_without_functions_skipped(self, make_context):
        ctx = make_context("src/lib/constants.ts", "export const LIMIT = 10\n")
        assert ctx.results("utilities") == []
