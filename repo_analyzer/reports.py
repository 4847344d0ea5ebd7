"""
Markdown reports for repo_analyzer.

Renders an analysis through Jinja2 templates. Default templates live in
DEFAULT_TEMPLATES; a custom template directory can override any of them by
file name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, TemplateNotFound

from repo_analyzer.models import SEVERITY_ORDER
from repo_analyzer.utils import truncate_string

if TYPE_CHECKING:
    from typing import Any

    from repo_analyzer.models import ComprehensiveAnalysis

logger = logging.getLogger(__name__)


DEFAULT_TEMPLATES = {
    "security.md.j2": """# Security Report

**Score:** {{ summary.score }}/100 (grade {{ summary.grade }})
**Findings:** {{ summary.total }} in {{ summary.affected_files }} file{{ '' if summary.affected_files == 1 else 's' }}

> Findings come from pattern matching and may include false positives.
> Review each one before acting on it.

## By Severity

| Severity | Count |
|----------|-------|
{% for severity in severities -%}
| {{ severity }} | {{ summary.by_severity.get(severity, 0) }} |
{% endfor %}
{% if summary.by_category %}
## By Category

| Category | Count |
|----------|-------|
{% for category, count in summary.by_category.items() -%}
| {{ category }} | {{ count }} |
{% endfor %}
{% endif %}
{% for severity in severities %}
{% set group = findings | selectattr('severity', 'equalto', severity) | list %}
{% if group %}
## {{ severity | capitalize }}

{% for f in group %}
### {{ f.rule_id }}: {{ f.title }}

**Location:** `{{ f.file_path }}:{{ f.line }}`{% if f.cwe_id %} | **{{ f.cwe_id }}**{% endif %}

{{ f.description }}

```
{{ f.code | snippet }}
```

**Recommendation:** {{ f.recommendation }}

{% endfor %}
{% endif %}
{% endfor %}
""",

    "summary.md.j2": """# Codebase Summary

| Metric | Value |
|--------|-------|
| Files | {{ stats.total_files | format_number }} |
| Lines | {{ stats.total_lines | format_number }} ({{ stats.code_lines | format_number }} code, {{ stats.comment_lines | format_number }} comment, {{ stats.blank_lines | format_number }} blank) |
| Functions | {{ stats.total_functions }} |
| Classes | {{ stats.total_classes }} |
| Components | {{ stats.total_components }} |
| API Routes | {{ stats.total_routes }} |
| Quality Score | {{ analysis.quality_score }}/100 |
| Security Score | {{ analysis.security_score }}/100 ({{ analysis.security_summary.grade }}) |
{% if analysis.patterns %}
## Detected Patterns

{% for pattern in analysis.patterns -%}
- {{ pattern }}
{% endfor %}
{% endif %}
{% if stats.languages %}
## Languages

| Language | Files |
|----------|-------|
{% for language, count in stats.languages.items() -%}
| {{ language }} | {{ count }} |
{% endfor %}
{% endif %}
{% if analysis.api_routes %}
## API Routes

| Method | Path | Protected | Location |
|--------|------|-----------|----------|
{% for route in analysis.api_routes -%}
| `{{ route.method }}` | `{{ route.path }}` | {{ 'Yes' if route.is_protected else 'No' }} | `{{ route.file_path }}:{{ route.line_start }}` |
{% endfor %}
{% endif %}
{% if stats.most_complex_functions %}
## Most Complex Functions

| Function | Complexity | Location |
|----------|------------|----------|
{% for func in stats.most_complex_functions -%}
| `{{ func.name }}` | {{ func.complexity }} | `{{ func.file_path }}:{{ func.line_start }}` |
{% endfor %}
{% endif %}
{% if analysis.env_vars %}
## Environment Variables

| Name | Required | Used In |
|------|----------|---------|
{% for var in analysis.env_vars -%}
| `{{ var.name }}` | {{ 'Yes' if var.is_required else 'No' }} | {{ var.used_in | length }} file{{ '' if var.used_in | length == 1 else 's' }} |
{% endfor %}
{% endif %}
{% if analysis.errors %}
## Extraction Errors

{% for error in analysis.errors -%}
- `{{ error.file_path }}` ({{ error.extractor }}): {{ error.message | snippet }}
{% endfor %}
{% endif %}
""",
}


class ReportRenderer:
    """
    Render Markdown reports.

    Supports both default templates and custom user templates.
    """

    def __init__(self, custom_template_dir: Path | None = None) -> None:
        """
        Initialize the report renderer.

        Args:
            custom_template_dir: Optional directory with custom templates.
        """
        loaders = []
        if custom_template_dir and custom_template_dir.exists():
            loaders.append(FileSystemLoader(str(custom_template_dir)))
        elif custom_template_dir:
            logger.warning("Template directory not found: %s", custom_template_dir)
        loaders.append(DictLoader(DEFAULT_TEMPLATES))

        self.env = Environment(loader=ChoiceLoader(loaders), keep_trailing_newline=True)
        self.env.filters["format_number"] = lambda x: f"{int(x):,}"
        self.env.filters["snippet"] = lambda text: truncate_string(text, 160) or ""

    def render(self, template_name: str, **context: Any) -> str:
        """
        Render a template with context.

        Args:
            template_name: Name of the template (e.g., "security.md.j2")
            **context: Template context variables.

        Returns:
            Rendered template string.
        """
        template = self.env.get_template(template_name)
        return template.render(**context)

    def has_template(self, template_name: str) -> bool:
        """Check if a template exists."""
        try:
            self.env.get_template(template_name)
            return True
        except TemplateNotFound:
            return False


def _security_findings(analysis: ComprehensiveAnalysis) -> list[dict[str, Any]]:
    """Issues and vulnerabilities in one shape, most severe first."""
    findings: list[dict[str, Any]] = []
    for issue in analysis.security_issues:
        findings.append({
            "rule_id": issue.rule_id,
            "title": issue.title,
            "severity": issue.severity.value,
            "description": issue.message,
            "file_path": issue.file_path,
            "line": issue.line,
            "code": issue.code,
            "recommendation": issue.recommendation,
            "cwe_id": issue.cwe_id,
        })
    for vuln in analysis.vulnerabilities:
        findings.append({
            "rule_id": vuln.rule_id,
            "title": vuln.name,
            "severity": vuln.severity.value,
            "description": vuln.description,
            "file_path": vuln.file_path,
            "line": vuln.line,
            "code": vuln.code,
            "recommendation": vuln.recommendation,
            "cwe_id": vuln.cwe_id,
        })
    rank = {severity.value: index for index, severity in enumerate(SEVERITY_ORDER)}
    findings.sort(key=lambda f: (rank[f["severity"]], f["file_path"], f["line"], f["rule_id"]))
    return findings


def render_security_report(
    analysis: ComprehensiveAnalysis,
    template_dir: Path | None = None,
) -> str:
    """
    Render the security findings of an analysis as Markdown.

    Args:
        analysis: Result of Analyzer.analyze.
        template_dir: Optional directory overriding "security.md.j2".

    Returns:
        Markdown text.
    """
    renderer = ReportRenderer(template_dir)
    return renderer.render(
        "security.md.j2",
        summary=analysis.security_summary,
        findings=_security_findings(analysis),
        severities=[severity.value for severity in SEVERITY_ORDER],
    )


def render_summary(
    analysis: ComprehensiveAnalysis,
    template_dir: Path | None = None,
) -> str:
    """
    Render an overview of an analysis as Markdown.

    Args:
        analysis: Result of Analyzer.analyze.
        template_dir: Optional directory overriding "summary.md.j2".

    Returns:
        Markdown text.
    """
    renderer = ReportRenderer(template_dir)
    return renderer.render("summary.md.j2", analysis=analysis, stats=analysis.stats)
