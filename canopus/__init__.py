"""Validate and repair CODEOWNERS files."""
