"""
File Classifier Tests
=====================
Language detection, structural flag and path categories.
"""

import pytest

from repo_analyzer.classifier import FileClassifier
from repo_analyzer.config import merge_config
from repo_analyzer.models import SourceFile


@pytest.fixture
def classifier():
    return FileClassifier()


class TestLanguageDetection:

    @pytest.mark.parametrize("path,language,structural", [
        ("src/app.ts", "ts", True),
        ("src/App.tsx", "tsx", True),
        ("server.mjs", "js", True),
        ("src/Button.jsx", "jsx", True),
        ("README.md", "md", False),
        ("prisma/schema.prisma", "prisma", False),
        (".env.local", "dotenv", False),
        ("Dockerfile", "dockerfile", False),
        ("weird.xyz", "unknown", False),
    ])
    def test_by_file_name(self, classifier, path, language, structural):
        info = classifier.classify(SourceFile(path, ""))
        assert info.language == language
        assert info.structural is structural

    def test_shebang(self, classifier):
        info = classifier.classify(SourceFile("bin/run", "#!/usr/bin/env node\nconsole.log(1)\n"))
        assert info.language == "js"
        assert info.structural is True

    def test_caller_hint_wins(self, classifier):
        info = classifier.classify(SourceFile("snippet.txt", "const a = 1", language="TypeScript"))
        assert info.language == "ts"

    def test_custom_extension_mapping(self):
        classifier = FileClassifier(merge_config({"languages": {"extensions": {"es6": "js"}}}))
        info = classifier.classify(SourceFile("legacy/app.es6", ""))
        assert info.language == "js"
        assert info.structural is True


class TestCategoriesAndSize:

    @pytest.mark.parametrize("path,category", [
        ("app/api/users/route.ts", "api-route"),
        ("src/utils/format.test.ts", "test"),
        ("src/services/user.service.ts", "service"),
        ("src/components/Button.tsx", "component"),
        ("package.json", "config"),
        ("src/index.ts", "other"),
    ])
    def test_category(self, classifier, path, category):
        assert classifier.classify(SourceFile(path, "")).category == category

    def test_lines_and_bytes(self, classifier):
        info = classifier.classify(SourceFile("a.ts", "a\nb\n"))
        assert info.lines == 2
        assert info.size_bytes == 4

    def test_size_counts_utf8_bytes(self, classifier):
        assert classifier.classify(SourceFile("a.ts", "é")).size_bytes == 2
