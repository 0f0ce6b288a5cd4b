"""
SmartBank Core

An in-memory account ledger with append-only transaction history,
Decimal-safe money arithmetic, and AES-256-GCM protection for PINs and
settings stored on disk.
"""

__version__ = "1.0.0"
