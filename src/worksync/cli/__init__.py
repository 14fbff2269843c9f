"""Command implementations for the worksync CLI."""
