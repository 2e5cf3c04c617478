"""Mutation Reconciler — merges a confirmed remote mutation into the caches.

Invariants:
    - Called only after the remote call succeeded; a failed call never reaches here
    - create → prepend (most-recent-first display order is a projection concern)
    - update/delete of an id the cache no longer holds is a no-op, not an error
    - The unread counter is adjusted locally in exactly two cases:
      marking one notification read, and deleting one unread notification.
      Both decrement by one, floored at zero. mark-all-read sets it to exactly zero.
    - Records are replaced (model_copy), never mutated field by field

Design Decisions:
    - Functions over a class: no state of their own, the caches own everything
    - Return values report what happened so stores can log no-ops
"""

import logging

from savings_client.core.entity_cache import CollectionCache, CounterCache, R
from savings_client.schemas.records import Notification

logger = logging.getLogger(__name__)


def apply_created(cache: CollectionCache[R], record: R) -> None:
    cache.prepend(record)


def apply_updated(cache: CollectionCache[R], record: R) -> bool:
    """Swap in the server's record. False when the cache no longer holds that id."""
    replaced = cache.replace_record(record)
    if not replaced:
        logger.info(
            "Dropped stale update",
            extra={"entity_kind": cache.kind.value, "record_id": record.id},
        )
    return replaced


def apply_deleted(cache: CollectionCache[R], record_id: int) -> R | None:
    removed = cache.remove_record(record_id)
    if removed is None:
        logger.info(
            "Delete of record not in cache",
            extra={"entity_kind": cache.kind.value, "record_id": record_id},
        )
    return removed


# --- Notifications -------------------------------------------------------------

def apply_notification_deleted(
    notifications: CollectionCache[Notification],
    unread: CounterCache,
    notification_id: int,
) -> Notification | None:
    """Remove the record; decrement the counter when it was unread."""
    removed = apply_deleted(notifications, notification_id)
    if removed is not None and not removed.read:
        unread.decrement()
    return removed


def apply_marked_read(
    notifications: CollectionCache[Notification],
    unread: CounterCache,
    notification_id: int,
) -> bool:
    """Flip read on the matching record and decrement the counter.

    When the record is not cached (only the counter is visible) the counter is
    still decremented. When the cached record was already read nothing changes.
    Returns whether the counter was adjusted.
    """
    cached = notifications.find(notification_id)
    if cached is not None and cached.read:
        return False
    if cached is not None:
        notifications.replace_record(cached.model_copy(update={"read": True}))
    unread.decrement()
    return True


def apply_marked_all_read(
    notifications: CollectionCache[Notification], unread: CounterCache,
) -> None:
    notifications.map_records(
        lambda n: n if n.read else n.model_copy(update={"read": True}),
    )
    unread.reset()
