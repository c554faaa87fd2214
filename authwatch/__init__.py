"""authwatch: authorization usage and expiry alerting."""

__version__ = "0.1.0"
