"""Space and time partitioning of a DHT location space with combined slice hashes."""

__version__ = "0.1.0"