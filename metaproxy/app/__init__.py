"""Media presence metadata proxy."""
