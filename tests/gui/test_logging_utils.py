"""Tests for the GUI log queue plumbing."""

import logging
import queue

from board_toolkit.gui.utils.logging_utils import (
    QueueLogHandler,
    attach_queue_handler,
    detach_queue_handler,
    drain_queue,
)


class TestQueueLogHandler:

    def test_emit_when_info_then_message_and_level_queued(self):
        log_queue = queue.Queue()
        handler = attach_queue_handler(log_queue, "board_toolkit.tests.gui")
        try:
            logging.getLogger("board_toolkit.tests.gui.child").warning("Scripts already assigned")
        finally:
            detach_queue_handler(handler, "board_toolkit.tests.gui")
        assert log_queue.get_nowait() == ("Scripts already assigned", "WARNING")

    def test_detach_when_called_then_no_more_messages(self):
        log_queue = queue.Queue()
        handler = attach_queue_handler(log_queue, "board_toolkit.tests.detach")
        detach_queue_handler(handler, "board_toolkit.tests.detach")
        logging.getLogger("board_toolkit.tests.detach").error("dropped")
        assert log_queue.empty()

    def test_emit_when_debug_handler_then_shown_as_info(self):
        log_queue = queue.Queue()
        handler = QueueLogHandler(log_queue, level=logging.DEBUG)
        record = logging.LogRecord("x", logging.DEBUG, __file__, 1, "detail %s", ("here",), None)
        handler.emit(record)
        assert log_queue.get_nowait() == ("detail here", "INFO")


class TestDrainQueue:

    def test_drain_when_more_than_limit_then_rest_left(self):
        log_queue = queue.Queue()
        for n in range(5):
            log_queue.put((f"m{n}", "INFO"))
        assert [text for text, _ in drain_queue(log_queue, limit=3)] == ["m0", "m1", "m2"]
        assert log_queue.qsize() == 2

    def test_drain_when_empty_then_empty_list(self):
        assert drain_queue(queue.Queue()) == []
