from prometheus_client import Counter, Histogram


class ReservationMetrics:
    """
    Table Reservation Core Metrics Collector

    Tracks table state transitions, reconciliation sweeps and transaction
    contention so a stuck or flapping sweep is visible on the /metrics endpoint.
    """

    def __init__(self):
        # ========== Table State Machine ==========
        self.table_transitions = Counter(
            'table_transitions_total',
            'Applied table status transitions',
            ['transition', 'to_status'],  # transition: lock/release/settle/occupy/manual/expire
        )

        self.sales_closed = Counter(
            'table_sales_closed_total',
            'Open sales closed because an occupied table was reserved',
        )

        # ========== Reconciliation Sweeps ==========
        self.sweep_runs = Counter(
            'reconciliation_sweep_runs_total',
            'Reconciliation sweep runs',
            ['sweep', 'result'],  # sweep: lock/full_sync/expiry, result: success/partial/error
        )

        self.sweep_item_failures = Counter(
            'reconciliation_sweep_item_failures_total',
            'Reservations or tables skipped by a sweep after an error',
            ['sweep'],
        )

        self.sweep_duration = Histogram(
            'reconciliation_sweep_duration_seconds',
            'Reconciliation sweep duration',
            ['sweep'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
        )

        # ========== Reservation Requests ==========
        self.reservation_requests = Counter(
            'reservation_requests_total',
            'Reservation commands by outcome',
            # operation: create/update/start/complete/cancel/no_show
            ['operation', 'result'],  # result: success/forced/rejected
        )

        # ========== Data Store Contention ==========
        self.transaction_retries = Counter(
            'db_transaction_retries_total',
            'Transactions replayed after transient contention',
            ['operation'],
        )

        self.transaction_failures = Counter(
            'db_transaction_contention_failures_total',
            'Transactions that exhausted every retry',
            ['operation'],
        )

    # ========== Helper Methods ==========

    def record_table_transition(self, *, transition: str, to_status: str) -> None:
        self.table_transitions.labels(transition=transition, to_status=to_status).inc()

    def record_sweep(self, *, sweep: str, result: str, duration: float) -> None:
        self.sweep_runs.labels(sweep=sweep, result=result).inc()
        self.sweep_duration.labels(sweep=sweep).observe(duration)

    def record_reservation_request(self, *, operation: str, result: str) -> None:
        self.reservation_requests.labels(operation=operation, result=result).inc()


# Global metrics instance
metrics = ReservationMetrics()
