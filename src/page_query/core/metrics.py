"""Prometheus metrics for page-query.

All metrics are module-level singletons registered on the default
``REGISTRY``.  Nothing here affects behaviour; the counters exist so that
navigation outcomes and cache effectiveness are observable.

Metrics defined here:

  browser_launches_total{result}
      Counter — browser launch attempts (success, failure).

  page_navigations_total{status_class}
      Counter — completed navigations by HTTP status class (2xx, 3xx, 4xx, 5xx).

  page_navigation_errors_total{kind}
      Counter — failed navigations by error kind (RequestTimeout, NotAvailable, ...).

  page_navigation_duration_seconds
      Histogram — wall-clock navigation latency, successful or not.

  robots_checks_total{result}
      Counter — compliance decisions (allowed, disallowed).

  robots_cache_lookups_total{result}
      Counter — policy cache lookups (hit, negative_hit, miss).

Usage::

    from page_query.core.metrics import page_navigations_total
    page_navigations_total.labels(status_class="2xx").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Browser session metrics
# ---------------------------------------------------------------------------

browser_launches_total: Counter = Counter(
    "browser_launches_total",
    "Browser launch attempts by result.",
    labelnames=["result"],
)
"""Counter incremented once per underlying browser launch.

Labels:
  result: one of success, failure
"""

page_navigations_total: Counter = Counter(
    "page_navigations_total",
    "Completed page navigations by HTTP status class.",
    labelnames=["status_class"],
)

page_navigation_errors_total: Counter = Counter(
    "page_navigation_errors_total",
    "Failed page navigations by error kind.",
    labelnames=["kind"],
)

page_navigation_duration_seconds: Histogram = Histogram(
    "page_navigation_duration_seconds",
    "Page navigation latency in seconds.",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0, 100.0],
)

# ---------------------------------------------------------------------------
# Compliance gate metrics
# ---------------------------------------------------------------------------

robots_checks_total: Counter = Counter(
    "robots_checks_total",
    "robots.txt compliance decisions by result.",
    labelnames=["result"],
)

robots_cache_lookups_total: Counter = Counter(
    "robots_cache_lookups_total",
    "robots.txt policy cache lookups by result.",
    labelnames=["result"],
)
"""Counter for policy cache lookups.

Labels:
  result: hit (cached body), negative_hit (cached empty body), miss
"""


def status_class(status: int) -> str:
    """Return the ``"Nxx"`` class label for an HTTP status code."""
    return f"{status // 100}xx"
