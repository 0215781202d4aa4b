"""HTTP transport for the local library."""
