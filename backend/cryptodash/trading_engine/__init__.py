"""
Trading Engine Components

Simulated execution core:
- orders: order lifecycle variants, positions and placement results
- ExecutionLedger: balance, positions and order log behind one asyncio lock
- BuyExecutor / SellExecutor: fill or reject a pending order against the ledger
- TriggerMonitor: limit/stop trigger evaluation on price ticks
- OrderEngine: validation, delayed market execution and cancellation
"""
