"""
FinSmart - Source Package

A personal-finance ledger: transactions, category budgets, debts and
an emergency-fund goal, with every dashboard figure derived on demand.

DESIGN PRINCIPLES:
1. Records are validated before anything is mutated
2. Derived metrics are recomputed, never cached
3. The ledger never persists itself; callers flush pending collections
4. The AI advisor is optional and never breaks the ledger
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinSmart Team"
