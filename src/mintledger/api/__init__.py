"""HTTP adapter: maps requests onto workflow operations."""
