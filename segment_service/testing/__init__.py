"""In-memory implementations of the storage capabilities, for tests and local experiments."""
