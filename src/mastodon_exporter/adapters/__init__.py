"""Adapters connecting the core to databases, registries and web frameworks."""
