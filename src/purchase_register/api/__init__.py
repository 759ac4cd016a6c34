"""HTTP API for the purchase register."""
