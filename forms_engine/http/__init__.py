"""HTTP adapters: problem responses and session middleware."""
