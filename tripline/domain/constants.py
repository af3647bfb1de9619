"""Scheduling constants."""

SETTLEMENT_EPSILON = "0.01"
CURRENCY_QUANTUM = "0.01"
