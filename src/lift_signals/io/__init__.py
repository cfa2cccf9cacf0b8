"""File storage, serialization and event log."""
