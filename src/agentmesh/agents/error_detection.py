"""Error detection agent: likely runtime failures and unsafe patterns."""

from __future__ import annotations

import re

from ..core.agents import BaseAgent
from ..models.agent import AgentCapabilities, AgentKind
from ..models.context import AnalysisContext
from ..models.finding import Finding, FindingCategory, Severity
from ..utils.sanitize import find_credential, mask_secrets
from .source import JS_TS_TYPES, PY_TYPES, file_type_of, is_comment

# Lines scanned after a statement when looking for its handler
LOOKAHEAD = 5

_EVAL_RE = re.compile(r"(?<![\w.])eval\s*\(")
_PY_EXEC_RE = re.compile(r"(?<![\w.])exec\s*\(")
_POP_SHIFT_RE = re.compile(r"(\w+)\.(pop|shift)\(\)")
_FIND_RE = re.compile(r"(?:const|let|var)\s+(\w+)\s*=.*\.find\(")
_THROW_RE = re.compile(r"\bthrow\s+([^;]+)")
_CATCH_RE = re.compile(r"\bcatch\s*\(\s*(\w+)")
_INTERVAL_RE = re.compile(r"\bsetInterval\s*\(")
_RETHROWN_NAMES = {"e", "err", "error", "ex", "exc"}


class ErrorDetectionAgent(BaseAgent):
    """Finds code that is likely to fail, leak or be exploited at runtime."""

    name = "error-detection"
    version = "1.0.0"
    description = "Detects potential runtime errors and edge cases in code"
    capabilities = AgentCapabilities(
        kind=AgentKind.ERROR_DETECTION,
        tags=frozenset({"runtime", "security", "reliability"}),
        supported_file_types=frozenset(JS_TS_TYPES | PY_TYPES),
        categories=frozenset(
            {
                FindingCategory.CORRECTNESS,
                FindingCategory.SECURITY,
                FindingCategory.QUALITY,
                FindingCategory.PERFORMANCE,
            }
        ),
        can_suggest_fixes=True,
        supports_incremental=True,
    )

    def analyze_file(
        self,
        path: str,
        content: str,
        lines: list[str],
        context: AnalysisContext,
    ) -> list[Finding]:
        findings = self._check_security(path, lines)
        if file_type_of(path) not in PY_TYPES:
            findings.extend(self._check_async(path, lines))
            findings.extend(self._check_arrays(path, lines))
            findings.extend(self._check_error_handling(path, lines))
            findings.extend(self._check_resources(path, content, lines))
        return findings

    # ------------------------------------------------------------------
    # Security
    # ------------------------------------------------------------------

    def _check_security(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        is_python = file_type_of(path) in PY_TYPES
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            lineno = index + 1

            m = _EVAL_RE.search(line) or (_PY_EXEC_RE.search(line) if is_python else None)
            if m:
                func = m.group(0).split("(")[0].strip()
                findings.append(self.finding(
                    Severity.HIGH,
                    FindingCategory.SECURITY,
                    f"Use of {func}()",
                    f"{func}() can execute arbitrary code",
                    path, lineno, m.start() + 1,
                    snippet=line,
                    suggestion="Parse data explicitly (e.g. JSON) instead of evaluating it",
                    rule_id="eval-usage",
                ))

            if not is_python and "innerHTML" in line and ("+" in line or "${" in line or "concat" in line):
                findings.append(self.finding(
                    Severity.HIGH,
                    FindingCategory.SECURITY,
                    "Potential XSS",
                    "innerHTML with dynamic content can lead to XSS",
                    path, lineno, line.index("innerHTML") + 1,
                    snippet=line,
                    suggestion="Use textContent or sanitize the HTML",
                    rule_id="potential-xss",
                ))

            m = find_credential(line)
            if m:
                findings.append(self.finding(
                    Severity.HIGH,
                    FindingCategory.SECURITY,
                    "Hardcoded Credentials",
                    "Hardcoded credentials found in source code",
                    path, lineno, m.start() + 1,
                    snippet=mask_secrets(line),
                    suggestion="Load secrets from the environment or a secret store",
                    rule_id="hardcoded-credentials",
                ))
        return findings

    # ------------------------------------------------------------------
    # Async
    # ------------------------------------------------------------------

    def _check_async(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            col = line.find(".then(")
            if col < 0 or is_comment(line):
                continue
            window = "\n".join(lines[index : index + LOOKAHEAD + 1])
            if ".catch(" not in window and "try" not in lines[max(0, index - 1)]:
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.CORRECTNESS,
                    "Promise Without Error Handling",
                    "Promise chain lacks error handling (.catch())",
                    path, index + 1, col + 1,
                    snippet=line,
                    suggestion="Add .catch() to handle rejections",
                    rule_id="promise-no-catch",
                ))
        return findings

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def _check_arrays(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            lineno = index + 1

            m = _POP_SHIFT_RE.search(line)
            if m and not self._has_length_guard(lines, index, m.group(1)):
                array, method = m.group(1), m.group(2)
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.CORRECTNESS,
                    "Array Method on Empty Array",
                    f"{method}() returns undefined on empty arrays",
                    path, lineno, m.start() + 1,
                    snippet=line,
                    suggestion=f"Check {array}.length before calling {method}()",
                    rule_id="array-method-empty",
                ))

            m = _FIND_RE.search(line)
            if m and "?." not in line and not self._has_null_check(lines, index, m.group(1)):
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.CORRECTNESS,
                    "Array.find() Without Null Check",
                    "Array.find() returns undefined when nothing matches",
                    path, lineno, line.index(".find(") + 1,
                    snippet=line,
                    suggestion="Check the result for undefined or use optional chaining",
                    rule_id="array-find-no-check",
                ))
        return findings

    @staticmethod
    def _has_length_guard(lines: list[str], index: int, array: str) -> bool:
        start = max(0, index - LOOKAHEAD)
        return any(f"{array}.length" in line for line in lines[start : index + 1])

    @staticmethod
    def _has_null_check(lines: list[str], index: int, variable: str) -> bool:
        checks = (
            f"if ({variable})", f"if (!{variable})", f"{variable} ===", f"{variable} !==",
            f"{variable} ==", f"{variable} !=", f"{variable}?.", f"{variable} &&",
        )
        following = lines[index + 1 : index + LOOKAHEAD + 1]
        return any(check in line for line in following for check in checks)

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _check_error_handling(self, path: str, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            lineno = index + 1

            m = _CATCH_RE.search(line)
            if m:
                body = self._block_body(lines, index, m.start())
                if not any(token in body for token in ("console.", "logger.", "log(", "throw", "reject(")):
                    findings.append(self.finding(
                        Severity.MEDIUM,
                        FindingCategory.QUALITY,
                        "Silent Error Handling",
                        f"Error '{m.group(1)}' is caught but neither logged nor re-thrown",
                        path, lineno, m.start() + 1,
                        snippet=line,
                        suggestion="Log the error or re-throw it",
                        rule_id="silent-error-handling",
                    ))

            m = _THROW_RE.search(line)
            if m:
                value = m.group(1).strip()
                if "Error" not in value and value not in _RETHROWN_NAMES:
                    findings.append(self.finding(
                        Severity.MEDIUM,
                        FindingCategory.QUALITY,
                        "Non-Error Thrown",
                        "Throwing a value that is not an Error loses the stack trace",
                        path, lineno, m.start() + 1,
                        snippet=line,
                        suggestion="Throw Error instances: throw new Error(message)",
                        rule_id="non-error-thrown",
                    ))
        return findings

    @staticmethod
    def _block_body(lines: list[str], index: int, column: int = 0) -> str:
        """Text of the brace block opened at or after ``lines[index][column]``."""
        depth = 0
        body = []
        for line in [lines[index][column:]] + lines[index + 1 :]:
            body.append(line)
            depth += line.count("{") - line.count("}")
            if depth <= 0 and "{" in "".join(body):
                break
        text = "\n".join(body)
        return text[text.find("{") + 1:] if "{" in text else ""

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _check_resources(self, path: str, content: str, lines: list[str]) -> list[Finding]:
        if "clearInterval" in content:
            return []
        findings = []
        for index, line in enumerate(lines):
            m = _INTERVAL_RE.search(line)
            if m and not is_comment(line):
                findings.append(self.finding(
                    Severity.MEDIUM,
                    FindingCategory.PERFORMANCE,
                    "Timer Leak",
                    "setInterval without a corresponding clearInterval",
                    path, index + 1, m.start() + 1,
                    snippet=line,
                    suggestion="Keep the handle and clear the interval on teardown",
                    rule_id="timer-leak",
                ))
        return findings
