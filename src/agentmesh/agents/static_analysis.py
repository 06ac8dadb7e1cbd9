"""Static analysis agent: syntax, pattern and complexity checks.

Line-oriented rules for JavaScript/TypeScript and Python, plus
function-level complexity checks that are skipped for shallow runs.
"""

from __future__ import annotations

import re

from ..core.agents import BaseAgent
from ..models.agent import AgentCapabilities, AgentKind
from ..models.context import AnalysisContext, AnalysisDepth
from ..models.finding import Finding, FindingCategory, Severity
from .source import JS_TS_TYPES, PY_TYPES, TS_TYPES, extract_functions, file_type_of, is_comment

MAX_LINE_LENGTH = 120
MAX_INDENT = 24
MAX_COMPLEXITY = 10
MAX_FUNCTION_LINES = 50

_TODO_RE = re.compile(r"\b(TODO|FIXME|HACK)\b")
_JS_DEBUG_RE = re.compile(r"\bconsole\.(log|debug)\s*\(")
_PY_DEBUG_RE = re.compile(r"^\s*(print\s*\(|breakpoint\s*\(|import pdb)")
_MAGIC_NUMBER_RE = re.compile(r"\b(?!(?:0|1|2|10|100|1000)\b)\d{2,}\b")
_DEEP_IMPORT_RE = re.compile(r"""(?:from\s+['"]|require\(\s*['"])(?:\.\./){3,}""")
_PY_DEEP_IMPORT_RE = re.compile(r"^\s*from\s+\.{4,}")
_ANY_RE = re.compile(r":\s*any\b|<any>|\bany\[\]|\bas any\b")
_NON_NULL_RE = re.compile(r"\w!\.|\w!\)")


class StaticAnalysisAgent(BaseAgent):
    """Reference agent: style, maintainability and type-safety smells."""

    name = "static-analysis"
    version = "1.0.0"
    description = "Detects code smells, complexity hot spots and type-safety gaps"
    capabilities = AgentCapabilities(
        kind=AgentKind.STATIC_ANALYSIS,
        tags=frozenset({"quality", "maintainability", "typescript", "python"}),
        supported_file_types=frozenset(JS_TS_TYPES | PY_TYPES),
        categories=frozenset(
            {FindingCategory.QUALITY, FindingCategory.MAINTAINABILITY, FindingCategory.CORRECTNESS}
        ),
        can_suggest_fixes=True,
    )

    def analyze_file(
        self,
        path: str,
        content: str,
        lines: list[str],
        context: AnalysisContext,
    ) -> list[Finding]:
        kind = file_type_of(path)
        findings: list[Finding] = []
        findings.extend(self._check_lines(path, kind, lines))
        if kind in PY_TYPES:
            findings.extend(self._check_bare_except(path, lines))
        else:
            findings.extend(self._check_empty_catch(path, lines))
        if kind in TS_TYPES:
            findings.extend(self._check_typescript(path, lines))
        if context.depth != AnalysisDepth.SHALLOW:
            findings.extend(self._check_functions(path, content, lines))
        return findings

    # ------------------------------------------------------------------
    # Line rules
    # ------------------------------------------------------------------

    def _check_lines(self, path: str, kind: str, lines: list[str]) -> list[Finding]:
        findings = []
        debug_re = _PY_DEBUG_RE if kind in PY_TYPES else _JS_DEBUG_RE
        deep_import_re = _PY_DEEP_IMPORT_RE if kind in PY_TYPES else _DEEP_IMPORT_RE

        for index, line in enumerate(lines):
            lineno = index + 1
            stripped = line.strip()

            m = _TODO_RE.search(line)
            if m:
                findings.append(self.finding(
                    Severity.LOW,
                    FindingCategory.MAINTAINABILITY,
                    "TODO Comment",
                    f"Code contains a {m.group(1)} comment",
                    path, lineno, m.start() + 1,
                    snippet=line,
                    suggestion="Address the item or track it in an issue",
                    rule_id="todo-comment",
                ))

            m = debug_re.search(line)
            if m and not is_comment(line):
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.QUALITY,
                    "Debug Statement",
                    "Debug output should be removed from production code",
                    path, lineno, m.start() + 1,
                    snippet=line,
                    suggestion="Use a logger or remove the statement",
                    rule_id="debug-statement",
                ))

            if len(line) > MAX_LINE_LENGTH:
                findings.append(self.finding(
                    Severity.LOW,
                    FindingCategory.STYLE,
                    "Long Line",
                    f"Line is {len(line)} characters long (recommended max: {MAX_LINE_LENGTH})",
                    path, lineno, MAX_LINE_LENGTH + 1,
                    snippet=line[:150] + ("..." if len(line) > 150 else ""),
                    suggestion="Break the line into multiple lines",
                    rule_id="long-line",
                ))

            indent = len(line) - len(line.lstrip())
            if stripped and indent > MAX_INDENT:
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.MAINTAINABILITY,
                    "Deep Nesting",
                    "Code is deeply nested, consider refactoring",
                    path, lineno, 1,
                    snippet=line,
                    suggestion="Extract nested logic into separate functions",
                    rule_id="deep-nesting",
                ))

            if stripped and not is_comment(line) and not self._is_constant_definition(stripped, kind):
                for m in _MAGIC_NUMBER_RE.finditer(line):
                    findings.append(self.finding(
                        Severity.LOW,
                        FindingCategory.MAINTAINABILITY,
                        "Magic Number",
                        f"Magic number {m.group(0)} should be replaced with a named constant",
                        path, lineno, m.start() + 1,
                        snippet=line,
                        suggestion=f"Replace {m.group(0)} with a named constant",
                        rule_id="magic-number",
                    ))

            m = deep_import_re.search(line)
            if m:
                findings.append(self.finding(
                    Severity.LOW,
                    FindingCategory.MAINTAINABILITY,
                    "Deep Relative Import",
                    "Import path goes up too many directory levels",
                    path, lineno, m.start() + 1,
                    snippet=line,
                    suggestion="Use absolute imports or restructure modules",
                    rule_id="deep-relative-import",
                ))
        return findings

    @staticmethod
    def _is_constant_definition(stripped: str, kind: str) -> bool:
        if "//" in stripped or "#" in stripped:
            return True
        if kind in PY_TYPES:
            return bool(re.match(r"^[A-Z][A-Z0-9_]*\s*(:[^=]+)?=", stripped))
        return stripped.startswith(("const ", "export const ", "import "))

    def _check_empty_catch(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            col = line.find("catch")
            if col < 0 or "{" not in line:
                continue
            tail = line[line.index("{", col) + 1:].strip() if "{" in line[col:] else None
            next_line = lines[index + 1].strip() if index + 1 < len(lines) else ""
            if tail == "}" or (tail == "" and next_line == "}"):
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.QUALITY,
                    "Empty Catch Block",
                    "Empty catch block silently ignores errors",
                    path, index + 1, col + 1,
                    snippet=line,
                    suggestion="Handle or log the error",
                    rule_id="empty-catch",
                ))
        return findings

    def _check_bare_except(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            stripped = line.strip()
            if stripped == "except:":
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.QUALITY,
                    "Bare Except",
                    "Bare except catches SystemExit and KeyboardInterrupt too",
                    path, index + 1, line.index("except") + 1,
                    snippet=line,
                    suggestion="Catch a specific exception class",
                    rule_id="bare-except",
                ))
            elif stripped.startswith("except") and stripped.endswith(":"):
                following = lines[index + 1].strip() if index + 1 < len(lines) else ""
                if following == "pass":
                    findings.append(self.finding(
                        Severity.MEDIUM,
                        FindingCategory.QUALITY,
                        "Empty Except Block",
                        "Exception is silently ignored",
                        path, index + 1, line.index("except") + 1,
                        snippet=line,
                        suggestion="Handle or log the exception",
                        rule_id="empty-catch",
                    ))
        return findings

    # ------------------------------------------------------------------
    # TypeScript
    # ------------------------------------------------------------------

    def _check_typescript(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            lineno = index + 1
            if "@ts-ignore" in line:
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.CORRECTNESS,
                    "TypeScript Ignore",
                    "@ts-ignore suppresses TypeScript errors",
                    path, lineno, line.index("@ts-ignore") + 1,
                    snippet=line,
                    suggestion="Fix the underlying type error instead of ignoring it",
                    rule_id="ts-ignore",
                ))
            if is_comment(line):
                continue
            m = _ANY_RE.search(line)
            if m:
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.CORRECTNESS,
                    "Use of Any Type",
                    "Using 'any' disables type checking for this value",
                    path, lineno, m.start() + 1,
                    snippet=line,
                    suggestion="Use a specific type or 'unknown'",
                    rule_id="any-type",
                ))
            m = _NON_NULL_RE.search(line)
            if m:
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.CORRECTNESS,
                    "Non-null Assertion",
                    "Non-null assertion operator (!) can cause runtime errors",
                    path, lineno, m.start() + 2,
                    snippet=line,
                    suggestion="Check for null explicitly",
                    rule_id="non-null-assertion",
                ))
        return findings

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _check_functions(self, path: str, content: str, lines: list[str]) -> list[Finding]:
        findings = []
        for func in extract_functions(path, content, lines):
            if func.complexity > MAX_COMPLEXITY:
                findings.append(self.finding(
                    Severity.HIGH if func.complexity > 2 * MAX_COMPLEXITY else Severity.MEDIUM,
                    FindingCategory.MAINTAINABILITY,
                    "High Complexity",
                    f"Function '{func.name}' has cyclomatic complexity of {func.complexity} "
                    f"(recommended max: {MAX_COMPLEXITY})",
                    path, func.line, 1,
                    snippet=func.signature,
                    suggestion="Split the function into smaller, focused functions",
                    rule_id="high-complexity",
                    metadata={"complexity": func.complexity, "function": func.name},
                ))
            if func.line_count > MAX_FUNCTION_LINES:
                findings.append(self.finding(
                    Severity.HIGH if func.line_count > 2 * MAX_FUNCTION_LINES else Severity.MEDIUM,
                    FindingCategory.MAINTAINABILITY,
                    "Long Function",
                    f"Function '{func.name}' is {func.line_count} lines long "
                    f"(recommended max: {MAX_FUNCTION_LINES})",
                    path, func.line, 1,
                    snippet=func.signature,
                    suggestion="Split the function into smaller functions",
                    rule_id="long-function",
                    metadata={"line_count": func.line_count, "function": func.name},
                ))
        return findings
