"""Schema models for Natours documents."""
