"""
Reports module.

Derives stock, alerts, dashboard figures and tabular reports from the
movement ledger.
"""
