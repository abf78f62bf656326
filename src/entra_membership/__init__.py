"""Entra ID group membership and ownership with eventual-consistency handling."""
