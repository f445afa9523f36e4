"""IT equipment preventive maintenance API."""

__version__ = "1.0.0"
