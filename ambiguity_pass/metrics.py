"""Prometheus metrics for the audit pipeline. The gate engine itself stays side-effect free."""

from prometheus_client import Counter, Histogram

audits_total = Counter("ambiguity_audits_total", "Ambiguity Pass audits run", ["kind"])
audit_failures_total = Counter("ambiguity_audit_failures_total", "Audits that ended in an error", ["reason"])
oracle_repairs_total = Counter("ambiguity_oracle_repairs_total", "Oracle re-asks after a schema violation")
gate_clamps_total = Counter("ambiguity_gate_clamps_total", "Gate-trail entries recorded", ["gate"])
advisory_warnings_total = Counter("ambiguity_advisory_warnings_total", "Advisory warnings appended", ["source"])
final_reliance_cap_total = Counter("ambiguity_final_reliance_cap_total", "Reliance cap after gating", ["cap"])
audit_latency_seconds = Histogram("ambiguity_audit_latency_seconds", "Audit latency (seconds)")


def record_gate_trail(gates_applied, gate_warnings, lint_warnings, cap: str) -> None:
    for entry in gates_applied:
        gate_clamps_total.labels(gate=entry.split(":", 1)[0]).inc()
    if gate_warnings:
        advisory_warnings_total.labels(source="gate").inc(len(gate_warnings))
    if lint_warnings:
        advisory_warnings_total.labels(source="lint").inc(len(lint_warnings))
    final_reliance_cap_total.labels(cap=cap).inc()
