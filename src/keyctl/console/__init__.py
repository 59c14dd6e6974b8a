"""Console binding — drives the custody service from stdin lines."""
