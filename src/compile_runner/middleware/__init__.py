"""HTTP middleware for request correlation and error handling."""
