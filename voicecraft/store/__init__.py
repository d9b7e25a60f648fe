"""Local persistence for practice preferences."""
