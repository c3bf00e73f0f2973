"""Trilo challenge progress and rewards ledger."""
