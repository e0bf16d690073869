"""Low-level helpers: HTTP transport and filesystem writes."""
