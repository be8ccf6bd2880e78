"""HTTP API for browsing leaderboards and driving aggregation."""
