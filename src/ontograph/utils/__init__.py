"""Utility helpers shared across ontograph."""
