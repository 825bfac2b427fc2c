"""
Prometheus metrics endpoint.

Exposes ledger metrics in Prometheus format for scraping.

Metrics exposed:
- ledger_days_created_total: Ledger days inserted by the carry-forward engine
- ledger_creation_races_total: Creations that lost the unique-constraint race
- ledger_deltas_applied_total: Deltas applied by the mutation applier, by kind
- ledger_save_conflicts_total: Versioned saves rejected by a concurrent writer
- ledger_carry_forward_runs_total: Scheduled carry-forward runs, by outcome
- ledger_stale_combinations: Active companies without a ledger day for today
"""
import logging

from django.http import HttpResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

logger = logging.getLogger(__name__)


ledger_days_created = Counter(
    "ledger_days_created",
    "Ledger days created by the carry-forward engine",
)

ledger_creation_races = Counter(
    "ledger_creation_races",
    "Ledger day creations resolved by returning a concurrent creator's row",
)

ledger_deltas_applied = Counter(
    "ledger_deltas_applied",
    "Deltas applied to ledger days",
    ["kind"],
)

ledger_save_conflicts = Counter(
    "ledger_save_conflicts",
    "Ledger day saves rejected by the optimistic version check",
)

ledger_carry_forward_runs = Counter(
    "ledger_carry_forward_runs",
    "Daily carry-forward runs",
    ["outcome"],
)

ledger_stale_combinations = Gauge(
    "ledger_stale_combinations",
    "Active tenant/company combinations with no ledger day for the current civil day",
)


def collect_metrics():
    """Refresh gauges that are computed on scrape."""
    from ops.health import HealthCheck

    freshness = HealthCheck.check_ledger_freshness()
    if "missing" in freshness:
        ledger_stale_combinations.set(freshness["missing"])
    else:
        logger.warning(f"Skipping ledger freshness gauge: {freshness.get('error')}")


def get_prometheus_response():
    """Generate Prometheus metrics response."""
    collect_metrics()
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Exposes metrics in Prometheus format at /_metrics.
    Should be protected in production (internal network only).
    """

    def get(self, request):
        return get_prometheus_response()
