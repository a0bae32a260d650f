"""
Services module for the squares pool and its sportsbook.

This module organizes services into:
- betting: Pure wagering engine (odds math, lifecycle, pricing, parlay slip, ledger, settlement)
- game_service: Games, players, squares, quarter results and the audit log
- bet_service: Bet placement, settlement and cancellation against the database
- settlement_service: Cross-game settle-up report and settled markers
"""
