"""Command implementations of the depclosure CLI."""
