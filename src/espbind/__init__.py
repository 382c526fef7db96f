"""espbind - build-time resolver for ESP-IDF native binding crates."""

__version__ = "0.1.0"
