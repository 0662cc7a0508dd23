import logging
import threading

from changed_files_filter.handlers import FilteredNotificationHandler, log_notification


class DummyNotification:
    def __init__(self, backtrace, message=None):
        self.backtrace = backtrace
        if message is not None:
            self.message = message


class RecordingSink:
    def __init__(self):
        self.received = []

    def __call__(self, notification):
        self.received.append(notification)


MATCHING = DummyNotification(["/app/models/user.rb:42:in `save`"])
OTHER = DummyNotification(["/app/controllers/posts_controller.rb:10:in `index`"])


def test_matching_notification_is_shown():
    sink = RecordingSink()
    handler = FilteredNotificationHandler(["/app/models/user.rb"], sink=sink)

    assert handler.handle(MATCHING) is True
    assert sink.received == [MATCHING]
    assert handler.stats() == {"total": 1, "filtered": 0, "shown": 1}


def test_unrelated_notification_is_filtered():
    sink = RecordingSink()
    handler = FilteredNotificationHandler(["/app/models/user.rb"], sink=sink)

    assert handler.handle(OTHER) is False
    assert sink.received == []
    assert handler.stats() == {"total": 1, "filtered": 1, "shown": 0}


def test_empty_changed_set_shows_everything():
    sink = RecordingSink()
    handler = FilteredNotificationHandler([], sink=sink)
    empty = DummyNotification([])

    assert handler.filter.matches(OTHER) is False
    assert handler.handle(OTHER) is True
    assert handler.handle(empty) is True
    assert handler.handle(DummyNotification(None)) is True
    assert handler.stats() == {"total": 3, "filtered": 0, "shown": 3}


def test_missing_stack_is_dropped_when_filtering():
    sink = RecordingSink()
    handler = FilteredNotificationHandler(["/app/models/user.rb"], sink=sink)

    assert handler.handle(DummyNotification(None)) is False
    assert handler.stats()["filtered"] == 1


def test_counts_stay_consistent_over_a_sequence():
    handler = FilteredNotificationHandler(["/app/models/user.rb"], sink=RecordingSink())

    for n in [MATCHING, OTHER, OTHER, MATCHING, OTHER]:
        handler.handle(n)
        stats = handler.stats()
        assert stats["total"] == stats["filtered"] + stats["shown"]

    assert handler.stats() == {"total": 5, "filtered": 3, "shown": 2}


def test_stats_is_a_snapshot():
    handler = FilteredNotificationHandler(["/app/models/user.rb"], sink=RecordingSink())
    handler.handle(MATCHING)

    first = handler.stats()
    assert handler.stats() == first

    handler.handle(OTHER)
    assert first == {"total": 1, "filtered": 0, "shown": 1}


def test_sink_sees_shown_notifications_in_order():
    sink = RecordingSink()
    handler = FilteredNotificationHandler(["/app"], sink=sink)
    notifications = [
        DummyNotification([f"/app/file_{i}.py:{i + 1}:in f"]) for i in range(10)
    ]

    for n in notifications:
        handler.handle(n)

    assert sink.received == notifications


def test_handler_is_callable():
    sink = RecordingSink()
    handler = FilteredNotificationHandler(sink=sink)

    assert handler(OTHER) is True
    assert sink.received == [OTHER]


def test_concurrent_handle_calls_keep_counts_consistent():
    sink = RecordingSink()
    handler = FilteredNotificationHandler(["/app/models/user.rb"], sink=sink)
    start = threading.Event()

    def worker() -> None:
        start.wait(timeout=2.0)
        for i in range(500):
            handler.handle(MATCHING if i % 2 else OTHER)

    threads = [threading.Thread(target=worker, name=f"handler-{i}") for i in range(8)]
    for t in threads:
        t.start()
    start.set()
    for t in threads:
        t.join(timeout=5.0)

    assert handler.stats() == {"total": 4000, "filtered": 2000, "shown": 2000}
    assert len(sink.received) == 2000


# Default sink

def test_log_notification_logs_message_and_frames(caplog):
    n = DummyNotification(["/app/views.py:3:in index"], message="N+1 query detected")

    with caplog.at_level(logging.WARNING, logger="changed_files_filter"):
        log_notification(n)

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    assert "N+1 query detected" in record.getMessage()
    assert "/app/views.py:3:in index" in record.getMessage()


def test_log_notification_handles_missing_stack(caplog):
    with caplog.at_level(logging.WARNING, logger="changed_files_filter"):
        log_notification(DummyNotification(None))

    assert "(empty)" in caplog.records[0].getMessage()


def test_default_sink_is_logging(caplog):
    handler = FilteredNotificationHandler(["/app/models/user.rb"])

    with caplog.at_level(logging.WARNING, logger="changed_files_filter"):
        handler.handle(MATCHING)
        handler.handle(OTHER)

    assert len(caplog.records) == 1


def test_single_path_string_filters_unrelated_frames():
    sink = RecordingSink()
    handler = FilteredNotificationHandler("/app/models/user.rb", sink=sink)

    assert handler.handle(OTHER) is False
    assert handler.handle(MATCHING) is True
    assert sink.received == [MATCHING]
