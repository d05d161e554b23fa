"""Flask blueprints for the projection API."""
