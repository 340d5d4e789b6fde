"""
Household Ledger - Source Package

A local-first ledger and derived-state engine for a personal/household
finance tracker.

DESIGN PRINCIPLES:
1. The transaction log is the source of truth
2. Derived balances are caches that must always be replayable
3. Edits revert the old effect before applying the new one
4. Never lose a user-entered record because of a bookkeeping failure
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
