"""Dashboard core: environment-driven configuration."""
