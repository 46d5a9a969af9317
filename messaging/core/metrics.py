"""
In-memory Prometheus-style metrics.
"""
import threading
import time
from typing import Dict, List, Optional

# Durations kept per method/path
MAX_DURATION_SAMPLES = 1000

_lock = threading.Lock()
_metrics = {
    "http_requests_total": {},  # {(method, path, status): count}
    "http_request_duration_seconds": {},  # {(method, path): [durations]}
    "counters": {},  # {name: value}
    "startup_time": None,
}

COUNTER_HELP = {
    "messages_sent_total": "Messages accepted by POST /messages",
    "messages_marked_read_total": "Messages flipped from unread to read",
}


def record_request(method: str, path: str, status_code: int, duration: float) -> None:
    """Record an HTTP request metric."""
    with _lock:
        key = (method, path, status_code)
        totals = _metrics["http_requests_total"]
        totals[key] = totals.get(key, 0) + 1

        durations: List[float] = _metrics["http_request_duration_seconds"].setdefault((method, path), [])
        durations.append(duration)
        if len(durations) > MAX_DURATION_SAMPLES:
            del durations[:-MAX_DURATION_SAMPLES]


def increment(name: str, amount: int = 1) -> None:
    """Bump a named counter."""
    if amount <= 0:
        return
    with _lock:
        counters = _metrics["counters"]
        counters[name] = counters.get(name, 0) + amount


def get_counter(name: str) -> int:
    with _lock:
        return _metrics["counters"].get(name, 0)


def set_startup_time() -> None:
    """Record application startup time."""
    _metrics["startup_time"] = time.time()


def generate_prometheus_metrics(version: Optional[str] = None) -> str:
    """Generate Prometheus-format metrics output."""
    lines = []

    lines.append("# HELP app_info Application information")
    lines.append("# TYPE app_info gauge")
    lines.append(f'app_info{{version="{version or "unknown"}"}} 1')
    lines.append("")

    if _metrics["startup_time"]:
        lines.append("# HELP app_start_time_seconds Unix timestamp when the app started")
        lines.append("# TYPE app_start_time_seconds gauge")
        lines.append(f'app_start_time_seconds {_metrics["startup_time"]:.3f}')
        lines.append("")

    with _lock:
        request_totals = dict(_metrics["http_requests_total"])
        durations_by_route = {key: list(values) for key, values in _metrics["http_request_duration_seconds"].items()}
        counters = dict(_metrics["counters"])

    for name in sorted(set(COUNTER_HELP) | set(counters)):
        lines.append(f"# HELP {name} {COUNTER_HELP.get(name, name)}")
        lines.append(f"# TYPE {name} counter")
        lines.append(f"{name} {counters.get(name, 0)}")
        lines.append("")

    lines.append("# HELP http_requests_total Total number of HTTP requests")
    lines.append("# TYPE http_requests_total counter")
    for (method, path, status), count in sorted(request_totals.items()):
        lines.append(f'http_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}')
    lines.append("")

    lines.append("# HELP http_request_duration_seconds HTTP request duration in seconds")
    lines.append("# TYPE http_request_duration_seconds summary")
    for (method, path), durations in sorted(durations_by_route.items()):
        if durations:
            lines.append(f'http_request_duration_seconds_sum{{method="{method}",path="{path}"}} {sum(durations):.6f}')
            lines.append(f'http_request_duration_seconds_count{{method="{method}",path="{path}"}} {len(durations)}')

    return "\n".join(lines)
