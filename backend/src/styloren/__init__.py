"""Styloren backend: credit ledger and credit-gated styling features."""

__version__ = "0.1.0"
