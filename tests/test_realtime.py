import pytest

from services.realtime import ChangeFeed


def test_publish_reaches_matching_subscribers():
    feed = ChangeFeed()
    seen = []
    feed.subscribe("maintenance_requests", seen.append)
    feed.subscribe("equipment", lambda p: pytest.fail("wrong table"))

    feed.publish("maintenance_requests", "UPDATE", {"id": 1, "status": "Repaired"})

    assert seen == [{"table": "maintenance_requests", "event": "UPDATE",
                     "row": {"id": 1, "status": "Repaired"}}]


def test_event_and_row_filters():
    feed = ChangeFeed()
    seen = []
    feed.subscribe("notifications", seen.append, event="INSERT", row_filter={"user_id": 7})

    feed.publish("notifications", "UPDATE", {"id": 1, "user_id": 7})
    feed.publish("notifications", "INSERT", {"id": 2, "user_id": 8})
    feed.publish("notifications", "INSERT", {"id": 3, "user_id": 7})

    assert [p["row"]["id"] for p in seen] == [3]


def test_unknown_event_is_rejected():
    with pytest.raises(ValueError):
        ChangeFeed().subscribe("equipment", lambda p: None, event="TRUNCATE")


def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    seen = []
    sub = feed.subscribe("teams", seen.append)
    assert feed.subscriber_count("teams") == 1

    sub.unsubscribe()
    sub.unsubscribe()
    feed.publish("teams", "INSERT", {"id": 1})

    assert seen == []
    assert not sub.active
    assert feed.subscriber_count() == 0


def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def broken(payload):
        raise RuntimeError("boom")

    feed.subscribe("equipment", broken)
    feed.subscribe("equipment", seen.append)
    feed.publish("equipment", "DELETE", {"id": 4})

    assert len(seen) == 1
