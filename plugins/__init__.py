"""Plugin packages discovered by :mod:`app.blueprints`."""
