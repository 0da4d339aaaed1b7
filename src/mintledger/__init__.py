"""mintledger: token custody and approval workflows over a versioned key-value ledger."""

__version__ = "0.1.0"
