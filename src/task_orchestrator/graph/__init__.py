"""LangGraph workflow definitions and stage helpers."""
