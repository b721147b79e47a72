"""HTTP API for the domino ranking application."""
