"""Supply-distribution inventory core: stock ledger, reversals and serial numbers."""
