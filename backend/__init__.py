"""App Page Studio backend."""
