"""Planning session parser.

A planning session is a directory holding a ``TODOs.md`` file::

    ---
    planning_code: P-003
    title: Booking calendar
    ---
    # TODOs

    - [ ] **T-003-001**: Add availability table
      Store one row per night.
      - [x] **T-003-002**: Write migration

Task lines are markdown checkboxes with a bold task code. Deeper
indentation nests a task under the previous shallower one; indented
non-task lines below a task form its description. Once an issue exists
for a task, ``update_todos_with_links`` appends ``([#N](url))`` to its
line.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import frontmatter
import yaml

from ..models import PlanningSession, PlanningTask

logger = logging.getLogger(__name__)

TODOS_FILE = "TODOs.md"

TASK_LINE = re.compile(
    r"^(?P<indent>[ \t]*)[-*]\s+\[(?P<done>[ xX])\]\s+\*\*(?P<code>[A-Za-z]+-[\w.-]+)\*\*"
    r"\s*:?\s*(?P<title>.*?)\s*$"
)
ISSUE_LINK = re.compile(r"\s*\(\[#(?P<number>\d+)\]\((?P<url>[^)]*)\)\)\s*$")
SESSION_DIR = re.compile(r"^(P-\d+)")


class PlanningSessionError(Exception):
    """The planning session cannot be read."""

    pass


def _indent_width(indent: str) -> int:
    return len(indent.replace("\t", "    "))


def _session_id(directory: Path, metadata: dict) -> str:
    code = metadata.get("planning_code") or metadata.get("planningCode")
    if code:
        return str(code)
    match = SESSION_DIR.match(directory.name)
    return match.group(1) if match else directory.name


def parse_todos(text: str) -> list[PlanningTask]:
    """Parse the task tree out of TODOs.md content."""
    roots: list[PlanningTask] = []
    # (indent width, task) for the currently open chain of parents
    stack: list[tuple[int, PlanningTask]] = []
    descriptions: dict[int, list[str]] = {}

    for index, line in enumerate(text.splitlines()):
        match = TASK_LINE.match(line)
        if match:
            width = _indent_width(match.group("indent"))
            while stack and stack[-1][0] >= width:
                stack.pop()
            parent = stack[-1][1] if stack else None

            title = ISSUE_LINK.sub("", match.group("title"))
            task = PlanningTask(
                code=match.group("code"),
                title=title,
                completed=match.group("done").lower() == "x",
                level=len(stack),
                parent_code=parent.code if parent else None,
                line_number=index + 1,
            )
            if parent is not None:
                parent.subtasks.append(task)
            else:
                roots.append(task)
            stack.append((width, task))
            descriptions[id(task)] = []
            continue

        if not line.strip():
            if stack:
                descriptions[id(stack[-1][1])].append("")
            continue

        width = _indent_width(line[: len(line) - len(line.lstrip())])
        while stack and stack[-1][0] >= width:
            stack.pop()
        if stack:
            descriptions[id(stack[-1][1])].append(line.strip())

    def assign(tasks: list[PlanningTask]) -> None:
        for task in tasks:
            task.description = "\n".join(descriptions.get(id(task), [])).strip("\n")
            assign(task.subtasks)

    assign(roots)
    return roots


def parse_planning_session(session_path: Path) -> PlanningSession:
    """Read a planning session directory.

    Raises:
        PlanningSessionError: If TODOs.md is missing or its front matter is invalid.
    """
    todos_path = session_path / TODOS_FILE
    if not todos_path.is_file():
        raise PlanningSessionError(f"{TODOS_FILE} not found in {session_path}")

    text = todos_path.read_text(encoding="utf-8")
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        raise PlanningSessionError(f"Invalid front matter in {todos_path}: {e}") from e

    session = PlanningSession(
        session_id=_session_id(session_path, post.metadata),
        title=str(post.metadata.get("title", "")),
        path=session_path,
        tasks=parse_todos(text),
    )
    logger.info(
        "Parsed planning session %s: %d task(s)",
        session.session_id,
        len(session.iter_tasks()),
    )
    return session


def update_todos_with_links(session_path: Path, links: dict[str, tuple[int, str]]) -> int:
    """Append issue links to task lines that do not have one yet.

    Args:
        session_path: Planning session directory
        links: Task code -> (issue number, issue URL)

    Returns:
        Number of lines changed.
    """
    todos_path = session_path / TODOS_FILE
    text = todos_path.read_text(encoding="utf-8")
    lines = text.splitlines(keepends=True)
    changed = 0

    for index, line in enumerate(lines):
        body = line.rstrip("\r\n")
        match = TASK_LINE.match(body)
        if not match or match.group("code") not in links or ISSUE_LINK.search(body):
            continue
        number, url = links[match.group("code")]
        ending = line[len(body) :]
        lines[index] = f"{body.rstrip()} ([#{number}]({url})){ending}"
        changed += 1

    if changed:
        todos_path.write_text("".join(lines), encoding="utf-8")
        logger.info("Added %d issue link(s) to %s", changed, todos_path)
    return changed
