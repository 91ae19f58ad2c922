"""Path helpers: project-relative paths, glob matching and bounded walks."""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator

WILDCARD_PATTERN = re.compile(r"[*?{\[]")
BRACE_PATTERN = re.compile(r"\{([^{}]*,[^{}]*)\}")
SKIP_DIRECTORIES = frozenset(
    {".git", "node_modules", ".venv", "venv", "__pycache__", ".cache", ".next", ".pytest_cache"}
)


def to_posix(value: str) -> str:
    return re.sub(r"/+", "/", value.replace("\\", "/"))


def to_absolute(target: str | Path, project_root: Path) -> Path:
    """Resolve a project-relative or absolute path."""
    path = Path(target)
    if path.is_absolute():
        return path
    return (project_root / path).resolve()


def to_project_relative(absolute: str | Path, project_root: Path) -> str:
    """
    Express a path relative to the project root with POSIX separators.

    Paths outside the root keep their absolute form.
    """
    absolute = Path(absolute)
    try:
        relative = absolute.resolve().relative_to(project_root.resolve())
    except ValueError:
        return to_posix(str(absolute))
    return relative.as_posix()


def is_wildcard(pattern: str) -> bool:
    return bool(WILDCARD_PATTERN.search(pattern))


def pattern_base(pattern: str) -> str:
    """Literal directory prefix of a glob pattern."""
    if not is_wildcard(pattern):
        return pattern
    parts = re.split(r"[/\\]", pattern)
    literal = []
    for part in parts:
        if is_wildcard(part):
            break
        literal.append(part)
    if not literal:
        return "."
    if literal == [""]:
        return "/"
    return "/".join(literal)


def _normalize_pattern(pattern: str) -> str:
    normalized = to_posix(pattern.strip())
    return normalized[2:] if normalized.startswith("./") else normalized


def expand_braces(pattern: str) -> list[str]:
    """Expand "{a,b}" alternatives, innermost group first."""
    match = BRACE_PATTERN.search(pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def _translate_segment(segment: str) -> str:
    parts = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[" and segment.find("]", index + 2) != -1:
            end = segment.find("]", index + 2)
            body = segment[index + 1:end].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            index = end
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


def _translate(pattern: str) -> str:
    segments = pattern.split("/")
    parts = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            parts.append(".*" if last else "(?:[^/]+/)*")
        else:
            parts.append(_translate_segment(segment) + ("" if last else "/"))
    return "".join(parts)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern:
    """
    Compile a glob into a regex matched against whole POSIX paths.

    Wildcards stay within one path segment. A "**" segment spans any number
    of directories, including none. Braces expand to alternatives, and
    leading dots match like any other character.
    """
    alternatives = "|".join(f"(?:{_translate(p)})" for p in expand_braces(pattern))
    return re.compile(alternatives)


def glob_match(pattern: str, path: str) -> bool:
    """Match a POSIX path against a glob pattern."""
    return compile_glob(_normalize_pattern(pattern)).fullmatch(path) is not None


def matches_any(patterns: Iterable[str], absolute: str | Path, relative: str) -> bool:
    """Match absolute patterns against the absolute path and others against the relative one."""
    posix_absolute = to_posix(str(absolute))
    posix_relative = to_posix(relative)
    for pattern in patterns:
        if not pattern or not pattern.strip():
            continue
        normalized = _normalize_pattern(pattern)
        is_absolute = normalized.startswith("/") or re.match(r"^[A-Za-z]:", normalized)
        if glob_match(normalized, posix_absolute if is_absolute else posix_relative):
            return True
    return False


def walk_files(root: Path, max_depth: int) -> Iterator[Path]:
    """
    Yield files under root in sorted order, at most max_depth levels deep.

    Version-control, dependency and cache directories are skipped.
    """
    if not root.is_dir():
        return
    root_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root):
        depth = len(Path(dirpath).parts) - root_depth
        if depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRECTORIES)
        for filename in sorted(filenames):
            yield Path(dirpath) / filename
