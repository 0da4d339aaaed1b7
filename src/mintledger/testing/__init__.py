"""Test-only helpers. Not imported by production code."""
