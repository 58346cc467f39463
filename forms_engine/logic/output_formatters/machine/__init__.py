"""Machine output formats."""
