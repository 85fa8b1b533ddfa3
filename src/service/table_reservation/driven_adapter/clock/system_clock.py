from datetime import datetime, timezone

from src.service.table_reservation.app.interface.i_clock import IClock


class SystemClock(IClock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
