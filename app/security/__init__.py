"""Session authentication helpers for the API blueprints."""
