"""Configuration models for worksync.yml."""

from pydantic import BaseModel, Field, field_validator

from .work_items import CommentType

DEFAULT_TRACKING_PATH = ".worksync/tracking.json"

DEFAULT_INCLUDE_PATTERNS = [
    "**/*.py",
    "**/*.ts",
    "**/*.tsx",
    "**/*.js",
    "**/*.jsx",
    "**/*.mjs",
    "**/*.cjs",
]

DEFAULT_EXCLUDE_PATTERNS = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.venv/**",
    "**/__pycache__/**",
    "**/coverage/**",
    "**/*.min.js",
    "**/.git/**",
]


class GitHubConfig(BaseModel):
    """Repository coordinates for issue sync."""

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    base_url: str = Field(
        default="api.github.com",
        description="API host (use custom for GitHub Enterprise)",
    )
    labels: list[str] = Field(
        default_factory=list,
        description="Extra labels attached to every created or updated issue",
    )

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Reject owner/repo form in the repo field."""
        if "/" in v:
            raise ValueError("repo must be the repository name only; put the owner in 'owner'")
        return v

    @property
    def full_name(self) -> str:
        """Get 'owner/repo'."""
        return f"{self.owner}/{self.repo}"


class CommentScanConfig(BaseModel):
    """Which files and comment markers the TODO scan covers."""

    include: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    types: list[CommentType] = Field(default_factory=lambda: list(CommentType))

    @field_validator("types", mode="before")
    @classmethod
    def normalize_types(cls, v: list) -> list:
        """Accept lowercase marker names."""
        return [t.upper() if isinstance(t, str) else t for t in v]


class WorksyncConfig(BaseModel):
    """Root configuration model for worksync.yml."""

    version: int = Field(default=1)
    github: GitHubConfig | None = None
    comments: CommentScanConfig = Field(default_factory=CommentScanConfig)
    tracking_path: str = Field(default=DEFAULT_TRACKING_PATH)

    @classmethod
    def default(cls) -> "WorksyncConfig":
        """Return the configuration used when no worksync.yml exists."""
        return cls()
