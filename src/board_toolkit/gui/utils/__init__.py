"""GUI utilities."""

from .logging_utils import QueueLogHandler, attach_queue_handler, detach_queue_handler, drain_queue

__all__ = ["QueueLogHandler", "attach_queue_handler", "detach_queue_handler", "drain_queue"]
