"""
Household Ledger - Source Package

A small shared-finance tracker for a household: shared income/expense
transactions, per-member personal funds, and the balances derived from
them.

DESIGN PRINCIPLES:
1. Balances are derived on every read, never stored
2. Amounts are exact Decimals; the sign lives in type/direction
3. Nothing is written unless the whole form validates
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
