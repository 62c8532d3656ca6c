"""Office expenses ledger (admin-only)."""
