"""Domain value objects for search responses."""
