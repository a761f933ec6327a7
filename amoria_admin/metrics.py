"""
Prometheus metrics for the admin API: database queries, outbound vendor calls,
transactional email and the OTP flow.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from amoria_admin.metrics import db_queries
    >>> db_queries.labels(table="contact_us", operation="select").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Database Metrics
# =============================================================================

db_queries = Counter(
    "amoria_db_queries_total",
    "Total database statements executed",
    ["table", "operation"],
)
"""
Counter for database statements.

Labels:
    table: Table name (contact_us, team_members, activity_logs, visitor_tracking)
    operation: select, count, update, insert or delete
"""

db_errors = Counter(
    "amoria_db_errors_total",
    "Database errors surfaced to API callers",
    ["route"],
)

# =============================================================================
# Outbound HTTP Metrics
# =============================================================================

vendor_requests = Counter(
    "amoria_vendor_requests_total",
    "Outbound requests to third-party APIs",
    ["vendor", "status_code"],
)
"""
Counter for outbound HTTP requests.

Labels:
    vendor: brevo, zoho or backend
    status_code: HTTP status code, or "error" when no response was received
"""

vendor_latency = Histogram(
    "amoria_vendor_latency_seconds",
    "Outbound request latency in seconds",
    ["vendor"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)

upstream_failures = Counter(
    "amoria_upstream_failures_total",
    "Admin catalogue calls that failed against the marketplace backend",
    ["resource", "operation"],
)

token_refreshes = Counter(
    "amoria_token_refreshes_total",
    "Total access token refresh operations",
    ["provider"],
)
"""Counter for OAuth/bearer token refreshes (zoho, backend)."""

# =============================================================================
# Email and OTP Metrics
# =============================================================================

emails_sent = Counter(
    "amoria_emails_sent_total",
    "Transactional emails handed to Brevo",
    ["kind", "outcome"],
)

otp_events = Counter(
    "amoria_otp_events_total",
    "OTP requests by action and outcome",
    ["action", "outcome"],
)
"""
Counter for OTP events.

Labels:
    action: requested, resent, sent, verified
    outcome: success, rate_limited, not_found, email_failed, invalid
"""
