"""Domain models and analyzers."""
