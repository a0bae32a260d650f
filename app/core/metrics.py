"""
Prometheus metrics for the wagering service.

HTTP request metrics come from prometheus_fastapi_instrumentator (see
app.main); this module holds the domain counters.
"""
from prometheus_client import Counter, Gauge

bets_placed_total = Counter(
    "bets_placed_total",
    "Total bets accepted",
    ["bet_type"]
)

bets_rejected_total = Counter(
    "bets_rejected_total",
    "Total bet placements rejected",
    ["reason"]
)

bets_settled_total = Counter(
    "bets_settled_total",
    "Total bets moved out of pending",
    ["outcome"]
)

settlement_outstanding_players = Gauge(
    "settlement_outstanding_players",
    "Players with a non-zero unsettled balance at the last settlement report"
)


def record_bet_placed(bet_type: str):
    bets_placed_total.labels(bet_type=bet_type).inc()


def record_bet_rejected(reason: str):
    bets_rejected_total.labels(reason=reason).inc()


def record_bets_settled(outcome: str, count: int = 1):
    if count:
        bets_settled_total.labels(outcome=outcome).inc(count)


def update_settlement_metrics(outstanding: int):
    settlement_outstanding_players.set(outstanding)
