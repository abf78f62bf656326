"""Entra ID group membership operations."""
