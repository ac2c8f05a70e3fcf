"""HTTP surface for the orchestration core."""
