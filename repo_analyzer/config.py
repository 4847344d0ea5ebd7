"""
Configuration constants and loading utilities for repo_analyzer.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml


DEFAULT_EXCLUDE = [
    "node_modules",
    "__pycache__",
    ".git",
    ".venv",
    "venv",
    "dist",
    "build",
    ".next",
    ".turbo",
    "coverage",
    ".pytest_cache",
    ".mypy_cache",
    "*.pyc",
    "*.pyo",
    ".DS_Store",
    "*.log",
    "*.egg-info",
    "*.min.js",
    "*.map",
    "*.lock",
    "package-lock.json",
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.ico",
    "*.woff",
    "*.woff2",
    "*.pdf",
    "*.zip",
]


DEFAULT_CONFIG: dict[str, Any] = {
    # Language tagging. "structural" languages get entity extraction and
    # security scanning; everything else only feeds the statistics.
    "languages": {
        "structural": ["ts", "tsx", "js", "jsx"],
        "typed": ["ts", "tsx"],
        "jsx": ["tsx", "jsx"],
        # Extra extension -> language mappings, e.g. {".es6": "js"}
        "extensions": {},
    },

    # File categorization patterns (regex -> category name), matched against
    # the path with a leading "/". First match wins.
    "categories": {
        r".*(\.test|\.spec)\.[jt]sx?$": "test",
        r".*/(tests?|__tests__)/.*": "test",
        r".*/api/.*/route\.[jt]sx?$": "api-route",
        r".*/pages/api/.*": "api-route",
        r".*middleware.*\.[jt]sx?$": "middleware",
        r".*/controllers?/.*|.*\.controller\.[jt]s$": "controller",
        r".*/services?/.*|.*\.service\.[jt]s$": "service",
        r".*/(models?|entities|entity)/.*|.*\.prisma$": "model",
        r".*/hooks?/.*\.[jt]sx?$": "hook",
        r".*/components?/.*\.[jt]sx$": "component",
        r".*/(app|pages?)/.*\.[jt]sx$": "page",
        r".*/(types?|interfaces)/.*\.ts$": "types",
        r".*/(utils?|helpers?|lib)/.*": "util",
        r".*\.(json|ya?ml|toml)$|.*\.config\.[cm]?[jt]s$|.*/\.env[^/]*$": "config",
    },

    # Size limits. Code snippets are cut per entity kind.
    "limits": {
        "block_fallback_length": 200,
        "max_block_scan": 2_000_000,
        "max_signature_scan": 5000,
        "max_type_definition": 2000,
        "max_properties": 50,
        "code": {
            "function": 2000,
            "class": 3000,
            "interface": 1000,
            "type": 1000,
            "route": 2000,
            "middleware": 1000,
            "hook": 1500,
            "component": 2000,
        },
    },

    # Authentication markers. A route is protected when any of these
    # patterns matches somewhere in its file.
    "auth": {
        "patterns": [
            r"\brequireAuth\b",
            r"\bgetSession\b",
            r"\bgetServerSession\b",
            r"\bwithAuth\b",
            r"\bauthenticate\b",
            r"\bisAuthenticated\b",
            r"\bensureAuthenticated\b",
            r"\bverifyToken\b",
            r"\bjwt\.verify\b",
            r"\bcurrentUser\b",
            r"\bgetAuth\b",
            r"\bauth\(\s*\)",
            r"\bcheckAuth\b",
            r"\brequireUser\b",
            r"\bvalidateSession\b",
            r"\bgetToken\b",
        ],
    },

    # Complexity thresholds used by the quality score
    "complexity": {
        "long_function_lines": 100,
        "nesting_indent": 24,
        "tab_width": 4,
    },

    # Quality score weights
    "quality": {
        "average_complexity_penalties": [[20, 20], [10, 10], [5, 5]],
        "long_function_penalty": 3,
        "deep_nesting_penalty": 2,
        "bonuses": {
            "TypeScript": 5,
            "Test Coverage": 10,
            "Zod Validation": 5,
            "Middleware Pattern": 3,
        },
    },

    # Security scanning
    "security": {
        "enabled": True,
        "context_radius": 5,
        "wide_context_radius": 10,
        "max_line_length": 2000,
        "weights": {
            "critical": 25,
            "high": 15,
            "medium": 5,
            "low": 1,
            "info": 0,
        },
        "disabled_rules": [],  # e.g., ["SEC022"]
    },

    # Environment variable scanning
    "env": {
        "languages": ["ts", "tsx", "js", "jsx", "py"],
    },

    "stats": {
        "top_n": 10,
    },

    # Fill FunctionRecord.called_by from the calls_to of other functions
    "cross_reference": True,

    # Thread pool size for per-file work (1 = run inline)
    "workers": 4,

    # Exclusion patterns used when loading files from disk
    "exclude": {
        "directories": [],  # e.g., [".archive", "docs", "vendor"]
        "extensions": [],   # e.g., [".md", ".txt"]
        "patterns": [],     # e.g., ["*.generated.*"]
        "max_file_bytes": 1_000_000,
    },
}


def load_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from YAML file, merged with defaults.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Configuration dictionary with user values merged over defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the top level of the file is not a mapping.
    """
    with open(config_path, "r", encoding="utf-8") as f:
        user_config = yaml.safe_load(f) or {}

    if not isinstance(user_config, dict):
        raise ValueError(f"Config file '{config_path}' must contain a mapping, not {type(user_config).__name__}")

    return merge_config(user_config)


def merge_config(user_config: dict[str, Any] | None) -> dict[str, Any]:
    """
    Merge a partial config over DEFAULT_CONFIG, one level deep.

    Args:
        user_config: User supplied values (may be None).

    Returns:
        A new configuration dictionary; DEFAULT_CONFIG is left untouched.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in (user_config or {}).items():
        if isinstance(value, dict) and key in config and isinstance(config[key], dict):
            config[key] = {**config[key], **value}
        else:
            config[key] = value
    return config


def get_config_template() -> str:
    """Generate a documented YAML config template."""
    return '''# =============================================================================
# repo-analyzer configuration
# =============================================================================
# Every key is optional. Values are merged one level deep over the defaults,
# so a section you list replaces only the keys you set inside it.
#
# Run with:
#   repo-analyzer . --config this_file.yaml -o analysis.json -v
#
# DISCLAIMER: this tool uses regular expressions, not compilers. It MAY miss
# unusual syntax and MAY report patterns that only look risky. Verify
# critical findings by hand.
# =============================================================================

# -----------------------------------------------------------------------------
# LANGUAGES
# -----------------------------------------------------------------------------
# Structural languages get function/class/route extraction and security rules.
languages:
  structural: [ts, tsx, js, jsx]
  extensions: {}
    # ".es6": js

# -----------------------------------------------------------------------------
# AUTHENTICATION MARKERS
# -----------------------------------------------------------------------------
# A route counts as protected when one of these regexes matches its file.
# Listing patterns here REPLACES the default list.
auth:
  patterns:
    - "\\\\brequireAuth\\\\b"
    - "\\\\bgetServerSession\\\\b"
    - "\\\\bauth\\\\(\\\\s*\\\\)"
    # - "\\\\bmyCustomGuard\\\\b"

# -----------------------------------------------------------------------------
# COMPLEXITY / QUALITY
# -----------------------------------------------------------------------------
complexity:
  long_function_lines: 100   # lines before a function counts as long
  nesting_indent: 24         # indentation (columns) before a file counts as deeply nested

# -----------------------------------------------------------------------------
# SECURITY
# -----------------------------------------------------------------------------
security:
  enabled: true
  context_radius: 5          # lines inspected around a match for mitigations
  disabled_rules: []         # e.g. [SEC022] to ignore console.log findings
  weights:
    critical: 25
    high: 15
    medium: 5
    low: 1
    info: 0

# -----------------------------------------------------------------------------
# EXECUTION
# -----------------------------------------------------------------------------
workers: 4                   # threads used for per-file analysis
cross_reference: true        # fill called_by for functions

# -----------------------------------------------------------------------------
# EXCLUSIONS (applied when reading from disk)
# -----------------------------------------------------------------------------
exclude:
  directories: []            # e.g. [vendor, fixtures]
  extensions: []             # e.g. [.md]
  patterns: []               # e.g. ["*.generated.*"]
  max_file_bytes: 1000000
'''
