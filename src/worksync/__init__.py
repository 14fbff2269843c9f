"""worksync - keep planning tasks and code comments in sync with GitHub issues."""

__version__ = "0.1.0"
