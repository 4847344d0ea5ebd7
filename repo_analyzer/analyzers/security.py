"""
Security pattern matcher for repo_analyzer.

Runs an ordered table of line-oriented rules over structural source files.
Each rule may carry a false-positive predicate that inspects the surrounding
lines (or the whole file) for mitigating context, and a path predicate that
limits where it runs.

DISCLAIMER: these are regular expressions, not data-flow analysis. Findings
are leads to review, not proof of a vulnerability.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING

from repo_analyzer.analyzers.auth import AuthDetector
from repo_analyzer.config import DEFAULT_CONFIG
from repo_analyzer.models import (
    SEVERITY_ORDER,
    SecurityIssue,
    SecuritySummary,
    Severity,
    Vulnerability,
    frozen_mapping,
)
from repo_analyzer.utils import anchored_path, split_lines

if TYPE_CHECKING:
    from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


GRADE_THRESHOLDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))
MAX_SNIPPET = 200
TEST_PATH_MARKERS = (".test.", ".spec.", "/test/", "/tests/", "/__tests__/")


# =============================================================================
# Line context and predicates
# =============================================================================


@dataclass(frozen=True)
class ScannedFile:
    """One file prepared for scanning: anchored path and length-capped lines."""

    path: str
    content: str
    lines: tuple[str, ...]

    @cached_property
    def lowered(self) -> str:
        return self.content.lower()

    @cached_property
    def anchored(self) -> str:
        return anchored_path(self.path).lower()


@dataclass(frozen=True)
class LineContext:
    """A matched line and access to its surroundings."""

    file: ScannedFile
    index: int  # 0-based

    @property
    def line(self) -> str:
        return self.file.lines[self.index]

    @property
    def path(self) -> str:
        return self.file.anchored

    def window(self, radius: int) -> str:
        """The matched line plus ``radius`` lines on each side."""
        start = max(0, self.index - radius)
        return "\n".join(self.file.lines[start:self.index + radius + 1])


def nearby(markers: Iterable[str], radius: int) -> Callable[[LineContext], bool]:
    """True when any marker (case-insensitive) appears within ``radius`` lines."""
    lowered = tuple(m.lower() for m in markers)

    def check(ctx: LineContext) -> bool:
        window = ctx.window(radius).lower()
        return any(marker in window for marker in lowered)

    return check


def on_line(markers: Iterable[str]) -> Callable[[LineContext], bool]:
    """True when any marker (case-insensitive) appears on the matched line."""
    lowered = tuple(m.lower() for m in markers)

    def check(ctx: LineContext) -> bool:
        line = ctx.line.lower()
        return any(marker in line for marker in lowered)

    return check


def in_file(markers: Iterable[str]) -> Callable[[LineContext], bool]:
    """True when any marker (case-insensitive) appears anywhere in the file."""
    lowered = tuple(m.lower() for m in markers)

    def check(ctx: LineContext) -> bool:
        return any(marker in ctx.file.lowered for marker in lowered)

    return check


def file_has_auth(detector: AuthDetector) -> Callable[[LineContext], bool]:
    """True when the file contains an authentication check."""

    def check(ctx: LineContext) -> bool:
        return detector.is_protected(ctx.file.content)

    return check


def negate(predicate: Callable[[LineContext], bool]) -> Callable[[LineContext], bool]:
    def check(ctx: LineContext) -> bool:
        return not predicate(ctx)

    return check


def lacks_nearby(markers: Iterable[str], radius: int) -> Callable[[LineContext], bool]:
    """True when no marker appears within ``radius`` lines."""
    return negate(nearby(markers, radius))


def any_of(*predicates: Callable[[LineContext], bool]) -> Callable[[LineContext], bool]:
    def check(ctx: LineContext) -> bool:
        return any(predicate(ctx) for predicate in predicates)

    return check


def is_test_path(path: str) -> bool:
    lowered = anchored_path(path).lower()
    return any(marker in lowered for marker in TEST_PATH_MARKERS)


def path_contains(*fragments: str) -> Callable[[str], bool]:
    """Path predicate: the anchored, lower-cased path contains a fragment."""

    def check(path: str) -> bool:
        lowered = anchored_path(path).lower()
        return any(fragment in lowered for fragment in fragments)

    return check


def not_test_path(path: str) -> bool:
    return not is_test_path(path)


# =============================================================================
# Rules
# =============================================================================


@dataclass(frozen=True)
class SecurityRule:
    """
    One line-oriented security rule.

    ``kind`` decides the output list: "vulnerability" for exploitable flaw
    classes, "issue" for everything else.
    """

    rule_id: str
    category: str
    severity: Severity
    title: str
    pattern: re.Pattern
    description: str
    recommendation: str
    cwe_id: str | None = None
    kind: str = "issue"
    false_positive: Callable[[LineContext], bool] | None = None
    applies_to: Callable[[str], bool] | None = None


def default_rules(
    auth: AuthDetector | None = None,
    config: dict[str, Any] | None = None,
) -> tuple[SecurityRule, ...]:
    """
    Build the ordered rule table.

    Args:
        auth: Detector used by the missing-auth rule; the same one routes use.
        config: Configuration; ``security.context_radius`` and
            ``security.wide_context_radius`` size the context windows.

    Returns:
        Rules in evaluation order.
    """
    config = config or DEFAULT_CONFIG
    security = config.get("security", {})
    radius = security.get("context_radius", 5)
    wide = security.get("wide_context_radius", 10)
    auth = auth or AuthDetector().configure(config)
    sanitizers = ("dompurify", "sanitize", "escapehtml", "xss(")

    return (
        SecurityRule(
            "SEC001", "hardcoded_secret", Severity.CRITICAL, "Hardcoded API Key or Secret",
            re.compile(
                r"(?:password|passwd|pwd|secret|api[_-]?key|access[_-]?key|private[_-]?key|auth[_-]?token|token)"
                r"\w*[\"']?\s*[:=]\s*[\"'`][^\"'`\s]{8,}[\"'`]",
                re.IGNORECASE,
            ),
            "A credential literal is committed to source code.",
            "Load secrets from environment variables or a secret manager and rotate the exposed value.",
            "CWE-798",
            false_positive=on_line(
                ("process.env", "import.meta.env", "os.environ", "your-", "your_", "example",
                 "placeholder", "changeme", "xxxx", "${")
            ),
        ),
        SecurityRule(
            "SEC002", "hardcoded_secret", Severity.CRITICAL, "Hardcoded Private Key",
            re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP |ENCRYPTED )?PRIVATE KEY-----"),
            "A private key is embedded in source code.",
            "Remove the key from the repository, rotate it and load it from a secret store.",
            "CWE-321",
        ),
        SecurityRule(
            "SEC003", "sql_injection", Severity.CRITICAL, "Potential SQL Injection",
            re.compile(r"\.(?:query|execute|raw|\$queryRawUnsafe|\$executeRawUnsafe)\s*\(\s*`[^`]*\$\{"),
            "A database query is built with template literal interpolation.",
            "Use parameterized queries or the ORM's tagged template helpers.",
            "CWE-89",
            kind="vulnerability",
        ),
        SecurityRule(
            "SEC004", "sql_injection", Severity.CRITICAL, "Raw SQL Query With Interpolation",
            re.compile(r"`\s*(?:SELECT\b|INSERT\s+INTO\b|UPDATE\s+\w+\s+SET\b|DELETE\s+FROM\b)[^`]*\$\{"),
            "SQL text is assembled with template literal interpolation.",
            "Pass values as bound parameters instead of interpolating them.",
            "CWE-89",
            kind="vulnerability",
            false_positive=on_line((".query(", ".execute(", ".raw(", "$queryrawunsafe", "$executerawunsafe")),
        ),
        SecurityRule(
            "SEC005", "sql_injection", Severity.HIGH, "SQL Built by String Concatenation",
            re.compile(r"[\"'](?:SELECT|INSERT|UPDATE|DELETE)\b[^\"']*[\"']\s*\+", re.IGNORECASE),
            "SQL text is concatenated with runtime values.",
            "Use placeholders ($1, ?) and pass values separately.",
            "CWE-89",
            kind="vulnerability",
            false_positive=on_line(("$1", "= ?", "(?", ", ?", ":param")),
        ),
        SecurityRule(
            "SEC006", "nosql_injection", Severity.HIGH, "Potential NoSQL Injection",
            re.compile(
                r"\.(?:find|findOne|findOneAndUpdate|updateOne|updateMany|deleteOne|deleteMany|aggregate)\s*\("
                r"\s*(?:req\.(?:body|query|params)\b|\{[^}]*:\s*req\.(?:body|query|params)\b)"
            ),
            "Request data flows directly into a document query and may carry operators.",
            "Validate input shape and strip keys starting with '$' (e.g. mongo-sanitize).",
            "CWE-943",
            kind="vulnerability",
            false_positive=nearby(("sanitize", "string(", "parse("), radius),
        ),
        SecurityRule(
            "SEC007", "nosql_injection", Severity.HIGH, "MongoDB $where Operator",
            re.compile(r"[\"']?\$where[\"']?\s*:"),
            "The $where operator evaluates JavaScript on the database server.",
            "Replace $where with standard query operators.",
            "CWE-943",
            kind="vulnerability",
        ),
        SecurityRule(
            "SEC008", "xss", Severity.HIGH, "Potential XSS via dangerouslySetInnerHTML",
            re.compile(r"\bdangerouslySetInnerHTML\s*="),
            "Raw HTML is rendered without React's escaping.",
            "Sanitize the HTML (e.g. DOMPurify.sanitize) or render text instead.",
            "CWE-79",
            kind="vulnerability",
            false_positive=nearby(sanitizers, wide),
        ),
        SecurityRule(
            "SEC009", "xss", Severity.MEDIUM, "Unescaped HTML Sink",
            re.compile(r"\.(?:innerHTML|outerHTML)\s*=(?!=)|\bdocument\.write(?:ln)?\s*\("),
            "Markup is written to the DOM without escaping.",
            "Use textContent or sanitize the markup before assignment.",
            "CWE-79",
            kind="vulnerability",
            false_positive=nearby(sanitizers, radius),
        ),
        SecurityRule(
            "SEC010", "code_injection", Severity.HIGH, "Use of eval()",
            re.compile(r"(?<![\w$.])eval\s*\(|\bnew\s+Function\s*\("),
            "Strings are compiled and executed as code.",
            "Avoid eval and new Function; parse data with JSON.parse or use a lookup table.",
            "CWE-95",
        ),
        SecurityRule(
            "SEC011", "command_injection", Severity.CRITICAL, "Potential Command Injection",
            re.compile(
                r"(?:\bchild_process\.|(?<![\w$.]))(?:exec|execSync|spawn|spawnSync|execFile|execFileSync)\s*\("
                r"\s*(?:`[^`]*\$\{|[^,)]*\+)"
            ),
            "A shell command is assembled from runtime values.",
            "Use execFile/spawn with an argument array and validate every argument.",
            "CWE-78",
            kind="vulnerability",
        ),
        SecurityRule(
            "SEC012", "path_traversal", Severity.HIGH, "Potential Path Traversal",
            re.compile(
                r"\bfs(?:\.promises)?\.(?:readFile|readFileSync|writeFile|writeFileSync|appendFile|appendFileSync"
                r"|createReadStream|createWriteStream|unlink|unlinkSync|readdir|readdirSync)\s*\("
                r"[^)]*(?:req\.(?:body|query|params)|\+|\$\{)"
            ),
            "A file system path is built from runtime values.",
            "Normalize the path, resolve it against a base directory and reject paths that escape it.",
            "CWE-22",
            kind="vulnerability",
            false_positive=nearby(("path.normalize", "path.resolve", "validatepath", "path.basename", "basename("), radius),
        ),
        SecurityRule(
            "SEC013", "insecure_crypto", Severity.HIGH, "Weak Cryptographic Hash",
            re.compile(r"\bcreateHash\s*\(\s*[\"'](?:md5|sha1)[\"']", re.IGNORECASE),
            "MD5 and SHA-1 are broken for security purposes.",
            "Use SHA-256 or better; use bcrypt, scrypt or argon2 for passwords.",
            "CWE-328",
            false_positive=any_of(on_line(("etag", "checksum")), nearby(("cachekey", "cache_key", "fingerprint"), radius)),
        ),
        SecurityRule(
            "SEC014", "insecure_random", Severity.MEDIUM, "Insecure Random Number Generator",
            re.compile(r"\bMath\.random\s*\("),
            "Math.random is predictable and unsuitable for security values.",
            "Use crypto.randomBytes, crypto.randomUUID or crypto.getRandomValues.",
            "CWE-330",
            false_positive=lacks_nearby(
                ("token", "secret", "password", "key", "salt", "nonce", "session", "otp", "uuid"), radius
            ),
        ),
        SecurityRule(
            "SEC015", "cors_misconfiguration", Severity.MEDIUM, "Wildcard CORS Origin",
            re.compile(
                r"Access-Control-Allow-Origin[\"']?\s*[,:]\s*[\"']\*[\"']|\borigin\s*:\s*[\"']\*[\"']|\bcors\(\s*\)"
            ),
            "Any origin may read responses from this server.",
            "Restrict allowed origins to an explicit list.",
            "CWE-942",
        ),
        SecurityRule(
            "SEC016", "open_redirect", Severity.MEDIUM, "Potential Open Redirect",
            re.compile(
                r"\b(?:res\.redirect|NextResponse\.redirect|redirect)\s*\(\s*(?:new\s+URL\(\s*)?"
                r"(?:req(?:uest)?\.(?:query|body|params|nextUrl\.searchParams)\b|searchParams\.get\s*\()"
            ),
            "The redirect target comes from the request.",
            "Redirect only to relative paths or hosts on an allowlist.",
            "CWE-601",
            kind="vulnerability",
            false_positive=nearby(("allowlist", "whitelist", "allowedhosts", "issaferedirect", "isrelativeurl"), radius),
        ),
        SecurityRule(
            "SEC017", "prototype_pollution", Severity.HIGH, "Potential Prototype Pollution",
            re.compile(
                r"(?:\bObject\.assign|\b_\.merge|\b_\.defaultsDeep|\bdeepMerge|(?<![\w$.])merge)\s*\("
                r"[^)]*req\.(?:body|query|params)\b"
            ),
            "Request data is merged into an object and may set __proto__.",
            "Copy only known keys or validate the payload with a schema first.",
            "CWE-1321",
            kind="vulnerability",
        ),
        SecurityRule(
            "SEC018", "regex_dos", Severity.MEDIUM, "Potentially Vulnerable Regular Expression",
            re.compile(r"\bnew\s+RegExp\s*\(\s*(?![\"'/`])"),
            "A regular expression is compiled from runtime input.",
            "Escape user input before building a RegExp and bound its length.",
            "CWE-1333",
            kind="vulnerability",
            false_positive=nearby(("escaperegexp", "escape-string-regexp", "escapestringregexp"), radius),
        ),
        SecurityRule(
            "SEC019", "insecure_cookie", Severity.MEDIUM, "Cookie Without Secure Flag",
            re.compile(r"\bres\.cookie\s*\(|\bcookies\(\)\.set\s*\(|\bcookies\.set\s*\("),
            "A cookie is set without secure/httpOnly attributes nearby.",
            "Set secure: true, httpOnly: true and an explicit sameSite.",
            "CWE-614",
            false_positive=nearby(("secure: true", "secure:true", "httponly: true", "httponly:true"), radius),
        ),
        SecurityRule(
            "SEC020", "missing_auth", Severity.MEDIUM, "API Route Without Authentication",
            re.compile(
                r"^\s*export\s+(?:async\s+)?function\s+(?:GET|POST|PUT|PATCH|DELETE)\b"
                r"|^\s*export\s+const\s+(?:GET|POST|PUT|PATCH|DELETE)\s*(?::[^=]+)?="
            ),
            "An API route handler is exported from a file with no authentication check.",
            "Verify the session or token before handling the request, or document that the route is public.",
            "CWE-306",
            false_positive=file_has_auth(auth),
            applies_to=path_contains("/api/"),
        ),
        SecurityRule(
            "SEC021", "missing_rate_limit", Severity.LOW, "Endpoint Without Rate Limiting",
            re.compile(r"\b(?:app|router)\.post\s*\(\s*[\"'`]/"),
            "A write endpoint is registered in a file with no rate limiter.",
            "Add a rate limiter (e.g. express-rate-limit) to write endpoints.",
            "CWE-770",
            false_positive=in_file(("ratelimit", "rate-limit", "limiter", "throttle")),
        ),
        SecurityRule(
            "SEC022", "debug_code", Severity.INFO, "Debug Logging Left in Code",
            re.compile(r"\bconsole\.(?:log|debug)\s*\("),
            "Debug output can leak internal data in production.",
            "Remove the statement or use a leveled logger.",
            None,
            applies_to=not_test_path,
        ),
        SecurityRule(
            "SEC023", "weak_password", Severity.HIGH, "Weak Password Length Requirement",
            re.compile(
                r"\bpassword\w*\.length\s*(?:<=?|>=?)\s*[1-7]\b|\bpassword\w*[^\n]*\.min\(\s*[1-7]\s*[,)]",
                re.IGNORECASE,
            ),
            "Passwords shorter than 8 characters are accepted.",
            "Require at least 8 characters (12 or more recommended).",
            "CWE-521",
        ),
        SecurityRule(
            "SEC024", "tls_disabled", Severity.HIGH, "TLS Certificate Validation Disabled",
            re.compile(r"\brejectUnauthorized\s*:\s*false\b|NODE_TLS_REJECT_UNAUTHORIZED[\"']?\]?\s*=\s*[\"']?0"),
            "Certificate validation is turned off, allowing man-in-the-middle attacks.",
            "Keep certificate validation on; trust a custom CA instead if needed.",
            "CWE-295",
        ),
    )


# =============================================================================
# Findings, scoring and summary
# =============================================================================


@dataclass(frozen=True)
class Finding:
    """One rule match before it is turned into an output record."""

    rule: SecurityRule
    file_path: str
    line: int
    code: str

    @property
    def key(self) -> tuple[str, str, int, str]:
        return (self.rule.category, self.file_path, self.line, self.rule.title)

    def to_record(self) -> SecurityIssue | Vulnerability:
        rule = self.rule
        if rule.kind == "vulnerability":
            return Vulnerability(
                rule_id=rule.rule_id,
                name=rule.title,
                category=rule.category,
                severity=rule.severity,
                description=rule.description,
                file_path=self.file_path,
                line=self.line,
                code=self.code,
                recommendation=rule.recommendation,
                cwe_id=rule.cwe_id,
            )
        return SecurityIssue(
            rule_id=rule.rule_id,
            type=rule.category,
            severity=rule.severity,
            title=rule.title,
            message=rule.description,
            file_path=self.file_path,
            line=self.line,
            code=self.code,
            recommendation=rule.recommendation,
            cwe_id=rule.cwe_id,
        )


@dataclass(frozen=True)
class SecurityReport:
    """Deduplicated findings with score and summary."""

    issues: tuple[SecurityIssue, ...] = ()
    vulnerabilities: tuple[Vulnerability, ...] = ()
    score: int = 100
    summary: SecuritySummary = field(default_factory=SecuritySummary)


def dedupe_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Keep the first finding per (category, file, line, title)."""
    seen: set[tuple[str, str, int, str]] = set()
    unique: list[Finding] = []
    for finding in findings:
        if finding.key in seen:
            continue
        seen.add(finding.key)
        unique.append(finding)
    return unique


def grade_for(score: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def security_score(severities: Iterable[Severity], weights: dict[str, int]) -> int:
    """100 minus the summed severity weights, clamped to [0, 100]."""
    penalty = sum(weights.get(severity.value, 0) for severity in severities)
    return max(0, min(100, 100 - penalty))


class SecurityScanner:
    """
    Run the security rule table over source files.

    Usage:
        scanner = SecurityScanner(config)
        findings = scanner.scan_file("app/api/users/route.ts", content)
        report = scanner.build_report(findings)
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        auth: AuthDetector | None = None,
        rules: tuple[SecurityRule, ...] | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        security = self.config.get("security", {})
        self.enabled: bool = security.get("enabled", True)
        self.max_line_length: int = security.get("max_line_length", 2000)
        self.weights: dict[str, int] = security.get("weights", DEFAULT_CONFIG["security"]["weights"])
        disabled = set(security.get("disabled_rules") or [])
        all_rules = rules if rules is not None else default_rules(auth, self.config)
        self.rules = tuple(rule for rule in all_rules if rule.rule_id not in disabled)
        if disabled:
            logger.debug("Security rules disabled: %s", ", ".join(sorted(disabled)))

    def scan_file(self, path: str, content: str) -> list[Finding]:
        """
        Scan one file.

        Lines are cut to ``max_line_length`` before matching so minified
        bundles cannot blow up the regex engine. Each rule makes one pass.

        Args:
            path: File path as given by the caller.
            content: File text; never modified.

        Returns:
            Findings sorted by (line, rule order).
        """
        if not self.enabled:
            return []
        scanned = ScannedFile(
            path=path,
            content=content,
            lines=tuple(line[:self.max_line_length] for line in split_lines(content)),
        )

        found: list[tuple[int, int, Finding]] = []
        for order, rule in enumerate(self.rules):
            if rule.applies_to is not None and not rule.applies_to(path):
                continue
            for index, line in enumerate(scanned.lines):
                if not rule.pattern.search(line):
                    continue
                if rule.false_positive is not None and rule.false_positive(LineContext(scanned, index)):
                    continue
                found.append((index, order, Finding(rule, path, index + 1, line.strip()[:MAX_SNIPPET])))

        found.sort(key=lambda item: (item[0], item[1]))
        return [finding for _, _, finding in found]

    def build_report(self, findings: Iterable[Finding]) -> SecurityReport:
        """
        Deduplicate findings and compute the score and summary.

        Args:
            findings: Findings of all files, in file input order.

        Returns:
            SecurityReport with issues and vulnerabilities split by rule kind.
        """
        unique = dedupe_findings(findings)
        records = [finding.to_record() for finding in unique]
        issues = tuple(r for r in records if isinstance(r, SecurityIssue))
        vulnerabilities = tuple(r for r in records if isinstance(r, Vulnerability))

        score = security_score((f.rule.severity for f in unique), self.weights)
        by_severity = {severity.value: 0 for severity in SEVERITY_ORDER}
        by_category: dict[str, int] = {}
        for finding in unique:
            by_severity[finding.rule.severity.value] += 1
            by_category[finding.rule.category] = by_category.get(finding.rule.category, 0) + 1

        summary = SecuritySummary(
            total=len(unique),
            by_severity=frozen_mapping(by_severity),
            by_category=frozen_mapping(dict(sorted(by_category.items()))),
            affected_files=len({finding.file_path for finding in unique}),
            score=score,
            grade=grade_for(score),
        )
        logger.debug("Security: %d findings, score %d", len(unique), score)
        return SecurityReport(issues, vulnerabilities, score, summary)
