"""Marketplace lifecycle relay."""
