"""Concrete adapters behind the interfaces in ``docaugment.interfaces``."""
