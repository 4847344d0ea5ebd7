"""
Shared fixtures for repo_analyzer tests.
"""

import textwrap

import pytest

from repo_analyzer.analyzer import Analyzer
from repo_analyzer.classifier import FileClassifier
from repo_analyzer.config import merge_config
from repo_analyzer.extractors import ExtractorRegistry, FileContext
from repo_analyzer.models import SourceFile


@pytest.fixture
def analyzer():
    return Analyzer(workers=1)


@pytest.fixture
def make_source():
    """Build a SourceFile from dedented text (leading blank line dropped)."""

    def factory(path, content="", language=None):
        return SourceFile(path=path, content=textwrap.dedent(content).lstrip("\n"), language=language)

    return factory


@pytest.fixture
def make_context(make_source):
    """Build a FileContext wired to a fresh set of extractors."""

    def factory(path, content="", config=None):
        config = merge_config(config)
        source = make_source(path, content)
        info = FileClassifier(config).classify(source)
        return FileContext(info=info, content=source.content, extractors=ExtractorRegistry.create_all(config))

    return factory
