"""HTTP adapters for the Hukum engine."""
