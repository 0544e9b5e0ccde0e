"""Threaded demos of the bounded buffer, dining philosophers and readers-writers problems."""

__version__ = "0.1.0"
__all__ = ["buffer", "philosophers", "readers_writers"]