"""
CLI Tests
=========
repo_analyzer.cli.main driven with argument lists.
"""

import json

import pytest

from repo_analyzer import __version__
from repo_analyzer.cli import main

SECRET = 'import jwt from "jsonwebtoken"\n\nconst JWT_SECRET = "abcdef0123456789ABCDEF"\n'


@pytest.fixture
def repo(tmp_path):
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.ts").write_text("export function hello() {\n  return 1\n}\n")
    (root / "src" / "config.ts").write_text(SECRET)
    (root / "vendor").mkdir()
    (root / "vendor" / "lib.ts").write_text("export function vendored() {}\n")
    (root / "README.md").write_text("# demo\n")
    return root


def analyzed_paths(output):
    return [f["path"] for f in json.loads(output)["files"]]


class TestOutput:

    def test_json_to_stdout(self, repo, capsys):
        main([str(repo)])
        data = json.loads(capsys.readouterr().out)

        assert data["meta"]["tool_version"] == __version__
        assert data["meta"]["root"] == str(repo.resolve())
        assert [f["name"] for f in data["functions"]] == ["hello", "vendored"]
        assert data["security_summary"]["by_severity"]["critical"] == 1
        assert data["security_issues"][0]["severity"] == "critical"

    def test_output_file(self, repo, tmp_path, capsys):
        out = tmp_path / "analysis.json"
        main([str(repo), "-o", str(out)])

        assert capsys.readouterr().out == ""
        assert json.loads(out.read_text())["meta"]["tool_version"] == __version__

    def test_summary(self, repo, capsys):
        main([str(repo), "--summary"])
        assert capsys.readouterr().out.startswith("# Codebase Summary")

    def test_security_report(self, repo, tmp_path, capsys):
        report = tmp_path / "SECURITY.md"
        main([str(repo), "--summary", "--security-report", str(report)])

        text = report.read_text()
        assert "SEC001" in text
        assert "`src/config.ts:3`" in text

    def test_init_config(self, capsys):
        main(["--init-config"])
        assert "security:" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == f"repo_analyzer {__version__}"


class TestExclusions:

    def test_default_excludes_nothing_in_plain_tree(self, repo, capsys):
        main([str(repo)])
        assert analyzed_paths(capsys.readouterr().out) == [
            "README.md",
            "src/app.ts",
            "src/config.ts",
            "vendor/lib.ts",
        ]

    def test_exclude_flag(self, repo, capsys):
        main([str(repo), "--exclude", "vendor"])
        assert "vendor/lib.ts" not in analyzed_paths(capsys.readouterr().out)

    def test_config_excluded_extensions(self, repo, tmp_path, capsys):
        config = tmp_path / "analyzer.yaml"
        config.write_text("exclude:\n  extensions: [md]\n")
        main([str(repo), "--config", str(config)])

        assert "README.md" not in analyzed_paths(capsys.readouterr().out)

    def test_max_file_size(self, repo, capsys):
        main([str(repo), "--max-file-size", "20"])
        assert analyzed_paths(capsys.readouterr().out) == ["README.md"]


class TestErrors:

    def test_missing_path(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing")])

        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_missing_config(self, repo, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(repo), "--config", str(tmp_path / "missing.yaml")])

        assert exc_info.value.code == 1
        assert "Config file" in capsys.readouterr().err

    def test_invalid_config(self, repo, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("security: [unclosed\n")
        with pytest.raises(SystemExit) as exc_info:
            main([str(repo), "--config", str(config)])

        assert exc_info.value.code == 1
        assert "Invalid YAML" in capsys.readouterr().err

    def test_config_that_is_not_a_mapping(self, repo, tmp_path, capsys):
        config = tmp_path / "list.yaml"
        config.write_text("- security\n- quality\n")
        with pytest.raises(SystemExit) as exc_info:
            main([str(repo), "--config", str(config)])

        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
