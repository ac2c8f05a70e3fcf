"""Stage functions for the built-in workflows."""
