# currency_intel/__init__.py
"""Currency Intelligence: multi-currency net worth revaluation and risk API."""

__version__ = "0.1.0"
