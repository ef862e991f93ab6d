"""
cryptodash: trading and market-data core for the crypto dashboard.
"""

__version__ = "0.1.0"
