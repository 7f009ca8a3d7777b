"""Commit collection: repository listing, transient clones and the commit ledger."""
