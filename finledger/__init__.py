"""Personal finance ledger: accounts, transactions and linked transfers."""

__version__ = "0.1.0"
