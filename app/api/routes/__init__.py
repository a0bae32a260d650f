"""
API routes, all mounted under /api/v1.

This module organizes routes into:
- games: games, players, squares, quarter winners, audit log
- bets: placement, settlement, cancellation, per-game stats
- parlays: stateless parlay slip toggling and quoting
- settlement: cross-game settle-up report and settled markers
"""
