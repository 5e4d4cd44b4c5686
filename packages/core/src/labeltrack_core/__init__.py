"""Label change tracking and pull request workflow reporting."""
