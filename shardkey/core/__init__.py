"""Secret-sharing engine: field arithmetic, polynomials, share codec."""

from shardkey.core.sss import reconstruct, reconstruct_bytes, split, split_bytes

__all__ = ["reconstruct", "reconstruct_bytes", "split", "split_bytes"]
