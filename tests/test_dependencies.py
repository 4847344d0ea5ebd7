"""
Dependencies Scanner Tests
==========================
package.json, requirements*.txt and pyproject.toml manifests.
"""

import json

import pytest

from repo_analyzer.scanners.dependencies import DependenciesScanner


@pytest.fixture
def scanner():
    return DependenciesScanner()


def names(records):
    return [(r.name, r.version) for r in records]


class TestPackageJson:

    def test_runtime_and_dev(self, scanner, make_source):
        manifest = json.dumps({
            "name": "web",
            "dependencies": {"next": "14.0.0", "react": "^18.2.0"},
            "devDependencies": {"jest": "^29.0.0"},
        })
        scan = scanner.scan([make_source("package.json", manifest)])

        assert names(scan.dependencies) == [("next", "14.0.0"), ("react", "^18.2.0")]
        assert names(scan.dev_dependencies) == [("jest", "^29.0.0")]
        assert scan.dependencies[0].ecosystem == "npm"
        assert scan.dependencies[0].source_file == "package.json"

    def test_only_root_most_manifest_read(self, scanner, make_source):
        scan = scanner.scan([
            make_source("packages/ui/package.json", json.dumps({"dependencies": {"nested": "1.0.0"}})),
            make_source("package.json", json.dumps({"dependencies": {"root": "1.0.0"}})),
        ])
        assert names(scan.dependencies) == [("root", "1.0.0")]

    def test_malformed_manifest_gives_empty_lists(self, scanner, make_source):
        scan = scanner.scan([make_source("package.json", "{ not json")])

        assert scan.dependencies == ()
        assert scan.dev_dependencies == ()

    def test_non_object_section_ignored(self, scanner, make_source):
        scan = scanner.scan([make_source("package.json", json.dumps({"dependencies": ["a", "b"]}))])
        assert scan.dependencies == ()

    def test_deeply_nested_manifest_gives_empty_lists(self, scanner, make_source):
        scan = scanner.scan([make_source("package.json", "[" * 100000 + "]" * 100000)])

        assert scan.dependencies == ()
        assert scan.dev_dependencies == ()


class TestRequirements:

    def test_requirements_files(self, scanner, make_source):
        scan = scanner.scan([
            make_source("requirements.txt", """
                # web
                flask>=2.0
                requests[security]==2.31 ; python_version > '3.8'
                -r base.txt
            """),
            make_source("requirements-dev.txt", "pytest\n"),
        ])

        assert names(scan.dependencies) == [("flask", ">=2.0"), ("requests", "==2.31")]
        assert names(scan.dev_dependencies) == [("pytest", "*")]
        assert scan.dependencies[0].ecosystem == "pypi"

    def test_deeper_requirements_ignored(self, scanner, make_source):
        scan = scanner.scan([
            make_source("requirements.txt", "flask\n"),
            make_source("examples/demo/requirements.txt", "django\n"),
        ])
        assert names(scan.dependencies) == [("flask", "*")]


class TestPyproject:

    def test_pep621(self, scanner, make_source):
        scan = scanner.scan([make_source("pyproject.toml", """
            [project]
            name = "demo"
            dependencies = ["httpx>=0.24", "demo[extra]"]

            [project.optional-dependencies]
            test = ["pytest>=7"]
        """)])

        assert names(scan.dependencies) == [("httpx", ">=0.24")]
        assert names(scan.dev_dependencies) == [("pytest", ">=7")]

    def test_poetry(self, scanner, make_source):
        scan = scanner.scan([make_source("pyproject.toml", """
            [tool.poetry.dependencies]
            python = "^3.11"
            fastapi = "^0.100"

            [tool.poetry.group.dev.dependencies]
            ruff = { version = "^0.1" }
        """)])

        assert names(scan.dependencies) == [("fastapi", "^0.100")]
        assert names(scan.dev_dependencies) == [("ruff", "^0.1")]

    def test_invalid_toml(self, scanner, make_source):
        scan = scanner.scan([make_source("pyproject.toml", "[project\nname = ")])
        assert scan.dependencies == ()

    def test_duplicates_across_manifests_kept_once(self, scanner, make_source):
        scan = scanner.scan([
            make_source("pyproject.toml", '[project]\nname = "x"\ndependencies = ["flask>=2"]\n'),
            make_source("requirements.txt", "flask==2.3\n"),
        ])
        assert names(scan.dependencies) == [("flask", ">=2")]

    @pytest.mark.parametrize("content", [
        'project = "not-a-table"\n',
        '[project]\nname = "x"\ndependencies = "flask"\n',
        '[project]\nname = "x"\noptional-dependencies = ["pytest"]\n',
        "[tool]\npoetry = 1\n",
        "[tool.poetry]\ndependencies = []\ngroup = 1\n",
    ])
    def test_wrongly_shaped_sections_ignored(self, scanner, make_source, content):
        scan = scanner.scan([make_source("pyproject.toml", content)])

        assert scan.dependencies == ()
        assert scan.dev_dependencies == ()

    def test_good_sections_kept_beside_malformed_ones(self, scanner, make_source):
        scan = scanner.scan([make_source("pyproject.toml", """
            [project]
            name = "demo"
            dependencies = ["httpx"]
            optional-dependencies = ["pytest"]
        """)])

        assert names(scan.dependencies) == [("httpx", "*")]
        assert scan.dev_dependencies == ()
