"""Domain contracts independent of the storage engine."""
