"""Scanner for TODO, HACK and DEBUG comments in source files.

Recognises ``#`` and ``//`` line comments, ``/* ... */`` blocks (joined
across lines) and JSX ``{/* ... */}`` comments. Inline metadata is
extracted from the comment text:

- priority: ``(P1)``, ``(high)``
- assignee: ``@alice`` or ``(alice)`` as in ``TODO(alice): ...``
- labels: ``[security]``, ``[@perf]``
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

from ..models import CodeComment, CommentType
from ..models.config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS

logger = logging.getLogger(__name__)

_TYPES = "|".join(t.value for t in CommentType)

LINE_COMMENT = re.compile(rf"(?:#|//)\s*({_TYPES})\b\s*(.*)$", re.IGNORECASE)
JSX_COMMENT = re.compile(rf"\{{\s*/\*\s*({_TYPES})\b\s*(.*?)\*/\s*\}}", re.IGNORECASE)
BLOCK_START = re.compile(rf"/\*\*?\s*({_TYPES})\b\s*(.*)$", re.IGNORECASE)
BLOCK_OPEN_ONLY = re.compile(r"^\s*/\*\*?\s*$")
BLOCK_CONTINUATION = re.compile(rf"^\s*\*\s*({_TYPES})\b\s*(.*)$", re.IGNORECASE)

PRIORITY_VALUES = {"critical", "high", "medium", "low"}
PRIORITY_PATTERN = re.compile(r"\(\s*([A-Za-z0-9]+)\s*\)")
LABEL_PATTERN = re.compile(r"\[@?([A-Za-z0-9_-]+)\]")
ASSIGNEE_PATTERN = re.compile(r"\(?@([A-Za-z0-9_-]+)\)?")


@dataclass
class CommentScanResult:
    """Result of scanning a directory tree."""

    comments: list[CodeComment] = field(default_factory=list)
    files_scanned: int = 0

    @property
    def comments_found(self) -> int:
        return len(self.comments)

    def by_type(self, comment_type: CommentType) -> list[CodeComment]:
        return [c for c in self.comments if c.type == comment_type]


def generate_comment_id(file_path: str, line_number: int, comment_type: CommentType) -> str:
    """Deterministic id for a comment at a location."""
    data = f"{file_path}:{line_number}:{comment_type.value}"
    return "comment-" + hashlib.sha256(data.encode("utf-8")).hexdigest()[:12]


def _is_priority(value: str) -> bool:
    return bool(re.fullmatch(r"[Pp]\d+", value)) or value.lower() in PRIORITY_VALUES


def extract_metadata(raw: str) -> dict:
    """Split raw comment text into content, priority, assignee and labels."""
    text = raw.strip()
    priority: str | None = None
    assignee: str | None = None

    labels = [m.group(1) for m in LABEL_PATTERN.finditer(text)]
    text = LABEL_PATTERN.sub("", text)

    for match in PRIORITY_PATTERN.finditer(text):
        value = match.group(1)
        if _is_priority(value):
            if priority is None:
                # P1, P2 keep their case; named priorities are lowercased
                priority = value.upper() if value[1:].isdigit() else value.lower()
        elif assignee is None:
            # A parenthesized non-priority word names the owner
            assignee = value
    text = PRIORITY_PATTERN.sub("", text)

    assignee_match = ASSIGNEE_PATTERN.search(text)
    if assignee_match:
        if assignee is None:
            assignee = assignee_match.group(1)
        text = ASSIGNEE_PATTERN.sub("", text)

    content = re.sub(r"^[\s:\-]+", "", text)
    content = " ".join(content.split())
    return {"content": content, "priority": priority, "assignee": assignee, "labels": labels}


def _inside_string(line: str, position: int) -> bool:
    """Rough check whether ``position`` falls inside a quoted string."""
    quote: str | None = None
    escaped = False
    for char in line[:position]:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif quote is None and char in "\"'`":
            quote = char
        elif char == quote:
            quote = None
    return quote is not None


def _make_comment(
    comment_type: str, raw: str, file_path: str, line_number: int
) -> CodeComment:
    ctype = CommentType(comment_type.upper())
    return CodeComment(
        id=generate_comment_id(file_path, line_number, ctype),
        type=ctype,
        file_path=file_path,
        line_number=line_number,
        **extract_metadata(raw),
    )


def parse_comments(
    text: str, file_path: str, types: list[CommentType] | None = None
) -> list[CodeComment]:
    """Extract marker comments from one file's content."""
    wanted = {t.value for t in (types or list(CommentType))}
    lines = text.splitlines()
    comments: list[CodeComment] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        line_number = i + 1

        jsx = JSX_COMMENT.search(line)
        if jsx and not _inside_string(line, jsx.start()):
            if jsx.group(1).upper() in wanted:
                comments.append(_make_comment(jsx.group(1), jsx.group(2), file_path, line_number))
            i += 1
            continue

        block = BLOCK_START.search(line)
        start_line = line_number
        if block is None and BLOCK_OPEN_ONLY.match(line) and i + 1 < len(lines):
            block = BLOCK_CONTINUATION.match(lines[i + 1])
            if block is not None:
                i += 1
                start_line = line_number + 1
                line = lines[i]

        if block is not None and not _inside_string(line, block.start()):
            raw = block.group(2)
            if "*/" in raw:
                raw = raw.split("*/", 1)[0]
            else:
                # Collect continuation lines up to the closing marker
                j = i + 1
                while j < len(lines):
                    part = lines[j]
                    closing = "*/" in part
                    part = part.split("*/", 1)[0]
                    part = re.sub(r"^\s*\*?\s?", "", part).strip()
                    if part:
                        raw += " " + part
                    if closing:
                        break
                    j += 1
                i = j
            if block.group(1).upper() in wanted:
                comments.append(_make_comment(block.group(1), raw, file_path, start_line))
            i += 1
            continue

        match = LINE_COMMENT.search(line)
        if match and not _inside_string(line, match.start()):
            if match.group(1).upper() in wanted:
                comments.append(
                    _make_comment(match.group(1), match.group(2), file_path, line_number)
                )

        i += 1

    return comments


def _matches_any(relative: str, patterns: list[str]) -> bool:
    # "./" prefix lets "**/dir/**" patterns match top-level directories too
    return any(fnmatch(relative, p) or fnmatch(f"./{relative}", p) for p in patterns)


def iter_source_files(
    base_dir: Path, include: list[str] | None = None, exclude: list[str] | None = None
) -> list[Path]:
    """Files under ``base_dir`` matching an include pattern and no exclude pattern."""
    include = include or DEFAULT_INCLUDE_PATTERNS
    exclude = exclude if exclude is not None else DEFAULT_EXCLUDE_PATTERNS

    found: set[Path] = set()
    for pattern in include:
        for path in base_dir.glob(pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(base_dir).as_posix()
            if not _matches_any(relative, exclude):
                found.add(path)
    return sorted(found)


def scan_code_comments(
    base_dir: Path,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
    types: list[CommentType] | None = None,
    root: Path | None = None,
) -> CommentScanResult:
    """Scan a directory tree for marker comments.

    File paths in the result are relative to ``root`` (default: ``base_dir``)
    with forward slashes, so scanning a subdirectory yields the same paths
    as scanning the whole project. Unreadable or non-UTF-8 files are skipped.

    Raises:
        ValueError: If ``base_dir`` is not inside ``root``.
    """
    base_dir = base_dir.resolve()
    root = root.resolve() if root is not None else base_dir
    if not base_dir.is_relative_to(root):
        raise ValueError(f"Scan directory {base_dir} is outside project root {root}")

    result = CommentScanResult()
    for path in iter_source_files(base_dir, include, exclude):
        relative = path.relative_to(root).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping unreadable file %s: %s", relative, e)
            continue
        result.files_scanned += 1
        result.comments.extend(parse_comments(text, relative, types))

    logger.info(
        "Scanned %d file(s) under %s: %d comment(s)",
        result.files_scanned,
        base_dir,
        result.comments_found,
    )
    return result
