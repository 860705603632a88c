"""Python models of XDP packet handlers (count-min sketch, NAT), their hash functions and option parsing."""

__version__ = "0.1.0"