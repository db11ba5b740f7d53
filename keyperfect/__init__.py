"""KeyPerfect offline persistence core."""
