"""
Authentication detection for repo_analyzer.

Decides whether a file carries an authentication check. Route extraction
uses it for ``is_protected`` and the security matcher uses the same
patterns to suppress missing-auth findings, so both always agree.

Config-driven: the pattern list lives under ``auth.patterns``.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from repo_analyzer.config import DEFAULT_CONFIG

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class AuthDetector:
    """
    Detect authentication checks in source text.

    Patterns are regexes compiled case-sensitively, since identifiers like
    ``getSession`` are case-significant in JavaScript.
    """

    def __init__(self) -> None:
        """Initialize with the default auth patterns."""
        self.patterns: list[re.Pattern] = []
        self._compile_patterns(DEFAULT_CONFIG["auth"]["patterns"])

    def _compile_patterns(self, patterns: list[str]) -> None:
        """Compile regex patterns for efficient matching."""
        self.patterns = []
        for pattern in patterns:
            try:
                self.patterns.append(re.compile(pattern))
            except re.error as e:
                logger.warning("Invalid auth pattern %r: %s", pattern, e)

    def configure(self, config: dict[str, Any]) -> "AuthDetector":
        """
        Configure the detector with auth patterns from config.

        Config format:
        ```yaml
        auth:
          patterns:
            - "\\bgetServerSession\\b"
            - "\\brequireAdmin\\b"
        ```

        Returns:
            self, for chaining.
        """
        patterns = config.get("auth", {}).get("patterns")
        if patterns:
            self._compile_patterns(patterns)
            logger.debug("AuthDetector configured: %d patterns", len(self.patterns))
        return self

    def is_protected(self, text: str) -> bool:
        """Whether text contains any authentication marker."""
        return any(pattern.search(text) for pattern in self.patterns)
