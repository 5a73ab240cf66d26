"""duesbook: dues, expenses and members ledger for a small household group."""

__version__ = "0.3.0"
