"""Live View — recompute on cache change and on criteria change."""

from savings_client.core.domain_types import EntityKind
from savings_client.core.entity_cache import CollectionCache
from savings_client.core.live_view import LiveView
from savings_client.core.projection import AccountFilter, filter_accounts

from tests.factories import account


def _view(*records, criteria=AccountFilter()):
    cache = CollectionCache(EntityKind.ACCOUNTS, records)
    return cache, LiveView(cache, filter_accounts, criteria)


def test_initial_view_is_projected():
    _, view = _view(account(1, active=True), account(2, active=False),
                    criteria=AccountFilter(active_only=True))
    assert [a.id for a in view.view] == [1]


def test_cache_change_recomputes_and_notifies():
    cache, view = _view(account(1))
    seen = []
    view.subscribe(seen.append)

    cache.prepend(account(2))

    assert [a.id for a in view.view] == [2, 1]
    assert len(seen) == 1


def test_criteria_change_recomputes():
    _, view = _view(account(1, holder="Ana"), account(2, holder="Luis"))
    view.update_criteria(search="luis")
    assert [a.id for a in view.view] == [2]
    assert view.criteria == AccountFilter(search="luis")


def test_equal_criteria_do_not_notify():
    _, view = _view(account(1))
    seen = []
    view.subscribe(seen.append)
    view.set_criteria(AccountFilter())
    assert seen == []


def test_closed_view_stops_following_cache():
    cache, view = _view(account(1))
    with view:
        pass
    cache.replace([])
    assert [a.id for a in view.view] == [1]
    assert cache.subscriber_count == 0
