"""Adapters connecting the domain to infrastructure."""
