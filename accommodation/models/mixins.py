from accommodation.scheduling.overlap import TimeWindow


class SlotHolderMixin:
    """
    Shared behaviour for appointments that occupy a time window.

    ``active_slot`` mirrors ``start_time`` while the appointment holds its slot
    and is cleared otherwise, so a unique constraint over
    (resource, date, active_slot) only ever sees live appointments.
    """
    blocking_statuses = frozenset()

    @property
    def window(self):
        return TimeWindow(self.start_time, self.end_time)

    def is_blocking(self):
        return self.status in self.blocking_statuses

    def sync_active_slot(self):
        self.active_slot = self.start_time if self.is_blocking() else None
