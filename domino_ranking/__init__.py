"""Domino competition tracking and rankings."""
