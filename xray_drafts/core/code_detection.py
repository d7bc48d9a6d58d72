"""Heuristic detection of code in free-text step data.

Used for rendering step data and for wrapping it in Jira wiki ``{code}``
blocks when drafts are exported to Xray. It is a heuristic: it recognises
JSON, JavaScript and TypeScript and makes no claim beyond that.
"""

import json
import re
from typing import List, NamedTuple, Optional, Pattern

from xray_drafts.models.schemas import CodeDetectionResult, CodeLanguage

TYPESCRIPT_PATTERNS: List[Pattern[str]] = [
    re.compile(r":\s*(string|number|boolean|any|void|never|unknown)\b"),
    re.compile(r"interface\s+\w+"),
    re.compile(r"type\s+\w+\s*="),
    re.compile(r"<\w+>"),
    re.compile(r":\s*\w+\[\]"),
    re.compile(r"as\s+(string|number|boolean|any|\w+)"),
    re.compile(r"\?\s*:"),
]

JAVASCRIPT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(const|let|var)\s+\w+\s*="),
    re.compile(r"\bfunction\s+\w*\s*\("),
    re.compile(r"=>\s*[{(]"),
    re.compile(r"\bexport\s+(default\s+)?"),
    re.compile(r"\bimport\s+.*\s+from\s+"),
    re.compile(r"\bclass\s+\w+"),
    re.compile(r"\basync\s+(function|\()"),
    re.compile(r"\bawait\s+"),
    re.compile(r"\breturn\s+"),
    re.compile(r"\bif\s*\(.*\)\s*\{"),
    re.compile(r"\bfor\s*\(.*\)\s*\{"),
    re.compile(r"\bwhile\s*\(.*\)\s*\{"),
    re.compile(r"\btry\s*\{"),
    re.compile(r"\bcatch\s*\("),
    re.compile(r"\.\w+\s*\("),
    re.compile(r"console\.(log|error|warn)"),
    re.compile(r"document\.|window\."),
    re.compile(r"\bnew\s+\w+\s*\("),
]

# Line-start markers for code that follows a prose prefix.
CODE_START_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^(const|let|var)\s+\w+", re.M),
    re.compile(r"^function\s+\w*\s*\(", re.M),
    re.compile(r"^(async\s+)?function", re.M),
    re.compile(r"^(export|import)\s+", re.M),
    re.compile(r"^class\s+\w+", re.M),
    re.compile(r"^interface\s+\w+", re.M),
    re.compile(r"^type\s+\w+\s*=", re.M),
    re.compile(r"^//", re.M),
    re.compile(r"^/\*", re.M),
    re.compile(r"^if\s*\(", re.M),
    re.compile(r"^for\s*\(", re.M),
    re.compile(r"^while\s*\(", re.M),
    re.compile(r"^try\s*\{", re.M),
    re.compile(r"^return\s+", re.M),
    re.compile(r"^await\s+", re.M),
    re.compile(r"^\w+\s*\(", re.M),
]

_EMBEDDED_OBJECT = re.compile(r"(.*?)(\{.*\})(.*)", re.S)
_EMBEDDED_ARRAY = re.compile(r"(.*?)(\[.*\])(.*)", re.S)

LANGUAGE_DISPLAY_NAMES = {
    CodeLanguage.JSON: "JSON",
    CodeLanguage.JAVASCRIPT: "JavaScript",
    CodeLanguage.TYPESCRIPT: "TypeScript",
    CodeLanguage.PLAIN: "Plain Text",
}

XRAY_CODE_LANGUAGES = {
    CodeLanguage.JSON: "json",
    CodeLanguage.JAVASCRIPT: "javascript",
    CodeLanguage.TYPESCRIPT: "typescript",
    CodeLanguage.PLAIN: "none",
}


class EmbeddedCode(NamedTuple):
    code: str
    prefix: str
    suffix: str


def _parses_as_json(text: str) -> bool:
    try:
        json.loads(text)
        return True
    except ValueError:
        return False


def is_pure_json(text: str) -> bool:
    trimmed = text.strip()
    if not trimmed.startswith(("{", "[")):
        return False
    return _parses_as_json(trimmed)


def is_typescript(text: str) -> bool:
    return any(pattern.search(text) for pattern in TYPESCRIPT_PATTERNS)


def is_javascript(text: str) -> bool:
    return any(pattern.search(text) for pattern in JAVASCRIPT_PATTERNS)


def find_embedded_json(text: str) -> Optional[EmbeddedCode]:
    """JSON object or array preceded by prose, e.g. ``Send payload: {...}``."""
    for pattern in (_EMBEDDED_OBJECT, _EMBEDDED_ARRAY):
        match = pattern.fullmatch(text)
        if not match:
            continue
        prefix, candidate, suffix = match.groups()
        # Without prefix text this is either pure JSON or not JSON at all
        if prefix.strip() and _parses_as_json(candidate):
            return EmbeddedCode(candidate, prefix.strip(), suffix.strip())
    return None


def find_embedded_script(text: str) -> Optional[EmbeddedCode]:
    """JavaScript/TypeScript starting on its own line after a prose prefix."""
    starts = [m.start() for m in (p.search(text) for p in CODE_START_PATTERNS) if m]
    if not starts:
        return None
    index = min(starts)
    if index == 0:
        return None

    prefix = text[:index].strip()
    code = text[index:]
    if not prefix or is_javascript(prefix) or is_typescript(prefix):
        return None
    if not is_javascript(code) and not is_typescript(code):
        return None
    return EmbeddedCode(code.strip(), prefix, "")


def detect_code(text: str) -> CodeDetectionResult:
    """Decide whether ``text`` is (or contains) code and which language it is."""
    if not text or not text.strip():
        return CodeDetectionResult(is_code=False, language=CodeLanguage.PLAIN)

    trimmed = text.strip()

    if is_pure_json(trimmed):
        return CodeDetectionResult(is_code=True, language=CodeLanguage.JSON)

    embedded = find_embedded_json(text)
    if embedded:
        return CodeDetectionResult(
            is_code=True,
            language=CodeLanguage.JSON,
            code_block=embedded.code,
            prefix_text=embedded.prefix,
            suffix_text=embedded.suffix,
        )

    embedded = find_embedded_script(text)
    if embedded:
        language = CodeLanguage.TYPESCRIPT if is_typescript(embedded.code) else CodeLanguage.JAVASCRIPT
        return CodeDetectionResult(
            is_code=True,
            language=language,
            code_block=embedded.code,
            prefix_text=embedded.prefix,
            suffix_text=embedded.suffix,
        )

    # TypeScript first: it is a superset of JavaScript
    if is_typescript(trimmed):
        return CodeDetectionResult(is_code=True, language=CodeLanguage.TYPESCRIPT)
    if is_javascript(trimmed):
        return CodeDetectionResult(is_code=True, language=CodeLanguage.JAVASCRIPT)

    return CodeDetectionResult(is_code=False, language=CodeLanguage.PLAIN)


def get_language_display_name(language: CodeLanguage) -> str:
    return LANGUAGE_DISPLAY_NAMES[language]


def get_xray_code_language(language: CodeLanguage) -> str:
    return XRAY_CODE_LANGUAGES[language]


def detect_export_language(text: str) -> CodeLanguage:
    """Stricter detection used for export.

    Only whole-text JSON and the strongest TypeScript/JavaScript markers count,
    so prose that merely mentions a method call is not wrapped in a code block.
    """
    if not text or not text.strip():
        return CodeLanguage.PLAIN
    trimmed = text.strip()
    if is_pure_json(trimmed):
        return CodeLanguage.JSON
    if any(pattern.search(trimmed) for pattern in TYPESCRIPT_PATTERNS[:3]):
        return CodeLanguage.TYPESCRIPT
    if any(pattern.search(trimmed) for pattern in JAVASCRIPT_PATTERNS[:7]):
        return CodeLanguage.JAVASCRIPT
    return CodeLanguage.PLAIN


def format_data_for_xray(data: str) -> str:
    """Wrap code-like step data in a Jira wiki ``{code:<lang>}`` block."""
    if not data:
        return ""
    language = detect_export_language(data)
    if language == CodeLanguage.PLAIN:
        return data
    return f"{{code:{get_xray_code_language(language)}}}\n{data}\n{{code}}"
