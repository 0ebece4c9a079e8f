"""Pydantic schemas and static board tables."""
