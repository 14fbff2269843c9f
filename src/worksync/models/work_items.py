"""Local work item models: planning tasks and code comments."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .tracking import CodeCommentSource, PlanningTaskSource


class CommentType(str, Enum):
    """Marker keywords recognised in source comments."""

    TODO = "TODO"
    HACK = "HACK"
    DEBUG = "DEBUG"


class PlanningTask(BaseModel):
    """A task line from a planning session's TODOs.md."""

    code: str  # e.g., "T-003-001"
    title: str
    description: str = ""
    completed: bool = False
    level: int = 0  # Nesting depth, 0 for top-level tasks
    parent_code: str | None = None
    line_number: int | None = None  # 1-based line in TODOs.md
    subtasks: list["PlanningTask"] = Field(default_factory=list)

    @property
    def state(self) -> str:
        return "completed" if self.completed else "open"


class PlanningSession(BaseModel):
    """A parsed planning session."""

    session_id: str  # Planning code, e.g. "P-003"
    title: str = ""
    path: Path | None = None  # Session directory
    tasks: list[PlanningTask] = Field(default_factory=list)

    def iter_tasks(self) -> list[PlanningTask]:
        """Flatten the task tree, parents before their subtasks."""
        result: list[PlanningTask] = []

        def visit(tasks: list[PlanningTask]) -> None:
            for task in tasks:
                result.append(task)
                visit(task.subtasks)

        visit(self.tasks)
        return result

    def source_for(self, task: PlanningTask) -> PlanningTaskSource:
        return PlanningTaskSource(session_id=self.session_id, task_id=task.code)


class CodeComment(BaseModel):
    """A TODO/HACK/DEBUG marker found in source code."""

    id: str  # Deterministic: hash of file path, line and type
    type: CommentType
    content: str
    file_path: str  # Relative to the scanned base directory
    line_number: int
    priority: str | None = None
    assignee: str | None = None
    labels: list[str] = Field(default_factory=list)

    @property
    def source(self) -> CodeCommentSource:
        return CodeCommentSource(
            comment_id=self.id,
            file_path=self.file_path,
            line_number=self.line_number,
        )
