"""Human output formats."""
