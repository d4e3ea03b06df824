"""A JSON REST API over buffered log records and a server that distributes its browser client."""

__version__ = "1.0.0"

__all__ = ["__version__"]