"""Persistence layer for the label log and issue database."""
