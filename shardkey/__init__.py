"""shardkey: Shamir secret sharing with checksummed, transcribable share strings."""

__version__ = "0.1.0"
