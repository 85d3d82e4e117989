"""HTTP API for interview sessions and the reviewer dashboard."""
