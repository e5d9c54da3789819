"""Domain declarations of the API model."""
