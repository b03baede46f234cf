"""External system integrations (git working copies and the forge API)."""
