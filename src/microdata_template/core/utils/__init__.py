"""Shared utilities (merging, dynamic module loading)."""
