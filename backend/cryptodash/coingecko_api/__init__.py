"""
CoinGecko API Package

Public market data (snapshots, OHLC history, global overview) with
mock/synthetic fallbacks.
"""
