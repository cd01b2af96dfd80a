"""Context detector for Emotional Support.

Maps a focused window to a semantic Context: which program is in front,
whether it is an editor, which language is being edited and where the
project lives. Program rules are evaluated in order; the first matching
rule wins. Detection never raises; anything unknown is left empty.
"""

import json
import logging
import os
import re
from typing import Optional

from emotional_support.core.models import Context, ProgramRule, WindowInfo

logger = logging.getLogger(__name__)


DEFAULT_PROGRAM_RULES: list[ProgramRule] = [
    # Editors / IDEs
    ProgramRule("vim", r"vim|nvim|neovim", is_programming=True),
    ProgramRule("vscode", r"code|visual studio code", is_programming=True, is_ide=True),
    ProgramRule("emacs", r"emacs", is_programming=True),
    ProgramRule("idea", r"idea|intellij", is_programming=True, is_ide=True),
    ProgramRule("sublime", r"sublime", is_programming=True, is_ide=True),
    ProgramRule("gedit", r"gedit", is_programming=True),
    ProgramRule("kate", r"kate", is_programming=True),
    ProgramRule("nano", r"nano", is_programming=True),
    # Browsers (chromium before chrome so the more specific name wins)
    ProgramRule("firefox", r"firefox"),
    ProgramRule("chromium", r"chromium"),
    ProgramRule("chrome", r"chrome"),
]

# language -> file extensions, in lookup order
LANGUAGE_EXTENSIONS: list[tuple[str, list[str]]] = [
    ("go", [".go"]),
    ("java", [".java"]),
    ("python", [".py", ".pyw"]),
    ("javascript", [".js", ".jsx", ".ts", ".tsx"]),
    ("rust", [".rs"]),
    ("cpp", [".cpp", ".cc", ".cxx", ".hpp", ".h", ".c"]),
    ("ruby", [".rb"]),
    ("php", [".php"]),
    ("kotlin", [".kt", ".kts"]),
    ("scala", [".scala"]),
    ("swift", [".swift"]),
    ("dart", [".dart"]),
]

# marker file -> language, checked inside the project directory
_PROJECT_MARKERS: list[tuple[str, str]] = [
    ("go.mod", "go"),
    ("package.json", "javascript"),
    ("requirements.txt", "python"),
    ("setup.py", "python"),
    ("Pipfile", "python"),
    ("pom.xml", "java"),
    ("build.gradle", "java"),
    ("Cargo.toml", "rust"),
]

_VSCODE_LANGUAGE_HINTS: list[tuple[tuple[str, ...], str]] = [
    (("go",), "go"),
    (("java",), "java"),
    (("python",), "python"),
    (("javascript", "typescript"), "javascript"),
]

_GO_PROCESS_RE = re.compile(r"\bgo(lang)?\b")


class ContextDetector:
    """Classifies window identity into a Context using regex rules."""

    def __init__(self, rules: Optional[list[ProgramRule]] = None) -> None:
        self.rules = list(rules) if rules is not None else list(DEFAULT_PROGRAM_RULES)
        self._compiled = _compile_rules(self.rules)
        self._extension_res = [
            (lang, re.compile(r"(?:" + "|".join(re.escape(e) for e in exts) + r")\b"))
            for lang, exts in LANGUAGE_EXTENSIONS
        ]

    def detect(self, window: WindowInfo) -> Context:
        """Return the Context for *window*. Never raises."""
        program = window.process
        is_programming = False
        is_ide = False

        title_lower = window.title.lower()
        process_lower = window.process.lower()
        for rule, pattern in self._compiled:
            if pattern.search(title_lower) or pattern.search(process_lower):
                program = rule.name
                is_programming = rule.is_programming
                is_ide = rule.is_ide
                break

        project_path = extract_path_from_title(window.title)
        language = self._detect_language(window.title, project_path, program)

        return Context(
            program=program,
            window_title=window.title,
            is_programming=is_programming,
            language=language,
            is_ide=is_ide,
            project_path=project_path,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _detect_language(self, title: str, project_path: str, program: str) -> str:
        title_lower = title.lower()
        for lang, pattern in self._extension_res:
            if pattern.search(title_lower):
                return lang

        if project_path:
            lang = detect_from_workspace(project_path)
            if lang:
                return lang

        if _GO_PROCESS_RE.search(program.lower()):
            return "go"
        return ""


def extract_path_from_title(title: str) -> str:
    """Guess the project directory from a window title.

    Handles titles such as ``/path/to/file.py - Editor`` (absolute path)
    and ``file.py (Project)`` (bare filename, which has no directory).
    """
    parts = title.split()
    if not parts:
        return ""

    if title.startswith("/") and "/" in parts[0]:
        return os.path.dirname(parts[0])

    for part in parts:
        if "." in part:
            return os.path.dirname(part)
    return ""


def detect_from_workspace(project_path: str) -> str:
    """Infer the language from project files inside *project_path*."""
    settings_path = os.path.join(project_path, ".vscode", "settings.json")
    try:
        with open(settings_path, "r", encoding="utf-8") as fh:
            settings = json.load(fh)
    except (OSError, ValueError):
        settings = None

    if isinstance(settings, dict):
        associations = settings.get("files.associations")
        if isinstance(associations, dict):
            for lang_id in associations.values():
                lang_str = str(lang_id)
                for hints, lang in _VSCODE_LANGUAGE_HINTS:
                    if any(h in lang_str for h in hints):
                        return lang

    for marker, lang in _PROJECT_MARKERS:
        if os.path.exists(os.path.join(project_path, marker)):
            return lang
    return ""


def _compile_rules(rules: list[ProgramRule]) -> list[tuple[ProgramRule, re.Pattern]]:
    compiled = []
    for rule in rules:
        try:
            compiled.append((rule, re.compile(rule.pattern, re.IGNORECASE)))
        except re.error:
            logger.warning("Skipping program rule %r with invalid pattern %r", rule.name, rule.pattern)
    return compiled
