"""
Pending-mutation tracker.

Keys are (day, entity) pairs with a write the server has not confirmed yet,
or has confirmed but no stats read taken after the confirmation has been
merged. While a day has any such key, a stats merge keeps the local copy of
that whole day: a server snapshot may already show entity A's write but not
entity B's.

Lifecycle of a key:
  mark_pending  -> in flight (one mark per dispatched write)
  settle        -> settled at epoch E once its last write is acknowledged
                   while the stats epoch was E
  release_settled(before_epoch=F) -> gone, once a stats response dispatched
                   at epoch F > E has been applied
  clear_pending -> one mark dropped immediately (failed write, rollback)

Owned by one tracker and used from a single event loop; no locking.
"""
from collections import Counter
from dataclasses import dataclass


@dataclass(frozen=True)
class PendingKey:
    day: str
    entity_id: str | None = None

    def __str__(self) -> str:
        if self.entity_id is None:
            return self.day
        return f"{self.day}/{self.entity_id}"


class PendingMutationTracker:
    def __init__(self):
        self._in_flight: Counter[PendingKey] = Counter()
        self._settled: dict[PendingKey, int] = {}

    def mark_pending(self, day: str, entity_id: str | None = None) -> PendingKey:
        key = PendingKey(day, entity_id)
        self._in_flight[key] += 1
        return key

    def _drop_mark(self, key: PendingKey) -> bool:
        """Remove one in-flight mark. True when no marks remain for the key."""
        if self._in_flight[key] <= 1:
            self._in_flight.pop(key, None)
            return True
        self._in_flight[key] -= 1
        return False

    def clear_pending(self, day: str, entity_id: str | None = None) -> None:
        """Drop one mark for the key. No-op if the key is not pending."""
        key = PendingKey(day, entity_id)
        if key in self._in_flight:
            if self._drop_mark(key):
                self._settled.pop(key, None)
        else:
            self._settled.pop(key, None)

    def settle(self, day: str, entity_id: str | None, epoch: int) -> None:
        """
        Mark one write for (day, entity_id) as acknowledged.

        Args:
            day: day key
            entity_id: entity the write was for
            epoch: stats request epoch current at acknowledgement time
        """
        key = PendingKey(day, entity_id)
        if key not in self._in_flight:
            return
        if self._drop_mark(key):
            self._settled[key] = max(epoch, self._settled.get(key, epoch))

    def release_settled(self, before_epoch: int) -> list[PendingKey]:
        """Drop settled keys acknowledged before a stats request dispatched at ``before_epoch``."""
        released = [k for k, e in self._settled.items() if e < before_epoch]
        for key in released:
            del self._settled[key]
        return released

    def is_any_pending_for_date(self, day: str, since_epoch: int | None = None) -> bool:
        """
        True if any entity on ``day`` has an outstanding mutation.

        Args:
            day: day key
            since_epoch: epoch of the stats response being merged; settled keys
                acknowledged before it are already visible server-side and do
                not count. None counts every settled key.
        """
        if any(k.day == day for k in self._in_flight):
            return True
        return any(
            k.day == day and (since_epoch is None or e >= since_epoch)
            for k, e in self._settled.items()
        )

    @property
    def has_in_flight(self) -> bool:
        return bool(self._in_flight)

    def is_in_flight(self, day: str, entity_id: str | None = None) -> bool:
        return PendingKey(day, entity_id) in self._in_flight

    def keys(self) -> set[PendingKey]:
        return set(self._in_flight) | set(self._settled)

    def __contains__(self, key: object) -> bool:
        return key in self._in_flight or key in self._settled

    def __len__(self) -> int:
        return len(self.keys())
