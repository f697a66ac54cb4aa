"""Concrete adapters for the interfaces in :mod:`venturelens.interfaces`."""
