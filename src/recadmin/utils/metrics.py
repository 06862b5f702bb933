from prometheus_client import Counter, Gauge, REGISTRY

# Keep global references so repeated imports/instantiations don't register the
# same metric name multiple times (pytest imports the modules several times).
_counter_cache: dict[str, Counter] = {}
_gauge_cache: dict[str, Gauge] = {}

label_names = ["component", "operation"]


def GaugeWithParams(metric_name: str, description: str) -> Gauge:
    if metric_name not in _gauge_cache:
        _gauge_cache[metric_name] = Gauge(
            metric_name,
            description,
            labelnames=label_names,
            registry=REGISTRY,
        )
    return _gauge_cache[metric_name]


def CounterWithParams(metric_name: str, description: str) -> Counter:
    if metric_name not in _counter_cache:
        _counter_cache[metric_name] = Counter(
            metric_name,
            description,
            labelnames=label_names,
            registry=REGISTRY,
        )
    return _counter_cache[metric_name]


OPERATION_FAILURES = CounterWithParams(
    "recadmin_operation_failures", "Dashboard operations that ended in an error outcome"
)
STALE_RESULTS = CounterWithParams("recadmin_stale_results", "Responses discarded because a newer one was applied")
POLL_TICKS = CounterWithParams("recadmin_poll_ticks", "Polling ticks dispatched by a scheduler")
INFLIGHT_TICKS = GaugeWithParams("recadmin_inflight_ticks", "Polling ticks currently awaiting their callback")
