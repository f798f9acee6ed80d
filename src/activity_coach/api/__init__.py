"""HTTP API for the activity dashboard."""
