"""HTTP layer for the Employee Registry."""
