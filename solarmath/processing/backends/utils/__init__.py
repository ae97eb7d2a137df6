"""Channel extraction, list handling and image statistics."""
