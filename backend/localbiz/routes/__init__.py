"""HTTP route handlers. Thin: parse the request, call a service, shape headers."""
