"""Command implementations for the CLI and the interactive shell."""
