"""Lightweight source helpers shared by the bundled agents.

JavaScript/TypeScript is handled with line heuristics (brace counting);
Python goes through ``ast``.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass, field
from typing import Optional

JS_TS_TYPES = {"ts", "tsx", "js", "jsx", "mts", "cts", "mjs", "cjs"}
TS_TYPES = {"ts", "tsx", "mts", "cts"}
PY_TYPES = {"py"}

_JS_FUNCTION_RE = re.compile(
    r"(?:function\s+([a-zA-Z_$][\w$]*)"
    r"|([a-zA-Z_$][\w$]*)\s*[:=]\s*(?:async\s+)?(?:function\b|\([^)]*\)\s*(?::\s*[^=]+)?=>))"
)
_JS_CLASS_RE = re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*)")
_JS_METHOD_RE = re.compile(
    r"^\s+(?:public\s+|private\s+|protected\s+|static\s+)*(?:async\s+)?([a-zA-Z_$][\w$]*)\s*\([^)]*\)\s*(?::\s*[^{]+)?\{"
)
_JS_DECISIONS = [r"\bif\b", r"\bwhile\b", r"\bfor\b", r"\bcase\b", r"\bcatch\b", r"&&", r"\|\|", r"\?\?", r"\?(?![.?])"]
_JS_KEYWORDS = {"if", "for", "while", "switch", "catch", "return", "function", "constructor"}


@dataclass
class FunctionInfo:
    name: str
    line: int
    signature: str
    line_count: int
    complexity: int
    is_async: bool = False
    parameters: list[str] = field(default_factory=list)


@dataclass
class ClassInfo:
    name: str
    line: int
    methods: list[FunctionInfo] = field(default_factory=list)


def file_type_of(path: str) -> str:
    return path.rsplit(".", 1)[-1].lower() if "." in path else ""


def is_comment(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(("//", "/*", "*", "#"))


# ---------------------------------------------------------------------------
# JavaScript / TypeScript
# ---------------------------------------------------------------------------

def js_complexity(code: str) -> int:
    return 1 + sum(len(re.findall(pattern, code)) for pattern in _JS_DECISIONS)


def _block_end(lines: list[str], start: int) -> int:
    """Index of the line closing the brace block opened at or after ``start``."""
    depth = 0
    opened = False
    for j in range(start, len(lines)):
        depth += lines[j].count("{") - lines[j].count("}")
        if "{" in lines[j]:
            opened = True
        if opened and depth <= 0:
            return j
    return start


def _js_params(signature: str) -> list[str]:
    m = re.search(r"\(([^)]*)\)", signature)
    if not m or not m.group(1).strip():
        return []
    params = []
    for raw in m.group(1).split(","):
        name = raw.strip().split(":")[0].split("=")[0].strip().lstrip(".")
        if name:
            params.append(name)
    return params


def extract_js_functions(lines: list[str]) -> list[FunctionInfo]:
    functions: list[FunctionInfo] = []
    for i, line in enumerate(lines):
        if is_comment(line):
            continue
        m = _JS_FUNCTION_RE.search(line)
        if not m:
            continue
        name = m.group(1) or m.group(2) or "anonymous"
        end = _block_end(lines, i)
        body = "\n".join(lines[i : end + 1])
        functions.append(
            FunctionInfo(
                name=name,
                line=i + 1,
                signature=line.strip(),
                line_count=end - i + 1,
                complexity=js_complexity(body),
                is_async="async" in line,
                parameters=_js_params(line),
            )
        )
    return functions


def extract_js_classes(lines: list[str]) -> list[ClassInfo]:
    classes: list[ClassInfo] = []
    for i, line in enumerate(lines):
        m = _JS_CLASS_RE.match(line)
        if not m:
            continue
        end = _block_end(lines, i)
        cls = ClassInfo(name=m.group(1), line=i + 1)
        for j in range(i + 1, end):
            mm = _JS_METHOD_RE.match(lines[j])
            if mm and mm.group(1) not in _JS_KEYWORDS:
                method_end = _block_end(lines, j)
                body = "\n".join(lines[j : method_end + 1])
                cls.methods.append(
                    FunctionInfo(
                        name=mm.group(1),
                        line=j + 1,
                        signature=lines[j].strip(),
                        line_count=method_end - j + 1,
                        complexity=js_complexity(body),
                        is_async="async " in lines[j],
                        parameters=_js_params(lines[j]),
                    )
                )
        classes.append(cls)
    return classes


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------

_PY_BRANCHES = (ast.If, ast.For, ast.AsyncFor, ast.While, ast.ExceptHandler, ast.With, ast.AsyncWith, ast.IfExp)


def py_complexity(node: ast.AST) -> int:
    complexity = 1
    for child in ast.walk(node):
        if isinstance(child, _PY_BRANCHES):
            complexity += 1
        elif isinstance(child, ast.BoolOp):
            complexity += len(child.values) - 1
        elif isinstance(child, ast.comprehension):
            complexity += 1 + len(child.ifs)
    return complexity


def _py_function(node: ast.FunctionDef | ast.AsyncFunctionDef, lines: list[str]) -> FunctionInfo:
    end = getattr(node, "end_lineno", None) or node.lineno
    return FunctionInfo(
        name=node.name,
        line=node.lineno,
        signature=lines[node.lineno - 1].strip() if node.lineno <= len(lines) else node.name,
        line_count=end - node.lineno + 1,
        complexity=py_complexity(node),
        is_async=isinstance(node, ast.AsyncFunctionDef),
        parameters=[a.arg for a in node.args.args if a.arg not in ("self", "cls")],
    )


def extract_py_functions(tree: ast.AST, lines: list[str]) -> list[FunctionInfo]:
    """Module-level and nested functions, excluding class methods."""
    functions: list[FunctionInfo] = []

    def _visit(node: ast.AST) -> None:
        for child in ast.iter_child_nodes(node):
            if isinstance(child, ast.ClassDef):
                continue
            if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                functions.append(_py_function(child, lines))
            _visit(child)

    _visit(tree)
    return functions


def extract_py_classes(tree: ast.AST, lines: list[str]) -> list[ClassInfo]:
    classes: list[ClassInfo] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.ClassDef):
            cls = ClassInfo(name=node.name, line=node.lineno)
            for item in node.body:
                if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
                    cls.methods.append(_py_function(item, lines))
            classes.append(cls)
    return classes


def parse_python(content: str, path: str) -> Optional[ast.Module]:
    """Parse Python source; ``None`` on syntax errors."""
    try:
        return ast.parse(content, filename=path)
    except SyntaxError:
        return None


def extract_functions(path: str, content: str, lines: list[str]) -> list[FunctionInfo]:
    kind = file_type_of(path)
    if kind in PY_TYPES:
        tree = parse_python(content, path)
        if tree is None:
            return []
        return extract_py_functions(tree, lines) + [
            m for c in extract_py_classes(tree, lines) for m in c.methods
        ]
    return extract_js_functions(lines)


def extract_classes(path: str, content: str, lines: list[str]) -> list[ClassInfo]:
    if file_type_of(path) in PY_TYPES:
        tree = parse_python(content, path)
        return extract_py_classes(tree, lines) if tree is not None else []
    return extract_js_classes(lines)
