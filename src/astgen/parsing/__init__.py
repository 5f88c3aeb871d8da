"""Language table and grammar adapters."""
