"""Session ownership of the loaded index and the search UI facade."""
