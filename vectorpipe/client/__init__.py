"""HTTP client for the remote vectorization service."""
