"""Bundled plugins. Each exposes a ``register_*(site, ...)`` function."""
