"""Body-weight log."""
