"""Ledger access: key encoding, record types, and transactional stores."""
