"""Resume generation from a commit ledger."""
