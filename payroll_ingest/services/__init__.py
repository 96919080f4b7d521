"""Batch orchestration, export and summary services."""
