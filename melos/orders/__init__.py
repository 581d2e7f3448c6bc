"""Order records, persistence and the authenticated order workflow."""
