# daily_ledger/__init__.py
"""
Daily stock ledger.

One LedgerDay row per (tenant, company, civil day):
- daykey: canonical civil-day boundary under the configured offset
- store: persistence with store-enforced uniqueness and versioned saves
- carry_forward: creates a day seeded from the previous day's closing stock
- mutations: applies purchase/sale/expense/stock-adjustment deltas
- aggregation: range summaries and profit & loss
- scheduler: daily carry-forward over every active tenant/company
"""
