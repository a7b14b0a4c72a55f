"""Tour reports."""
