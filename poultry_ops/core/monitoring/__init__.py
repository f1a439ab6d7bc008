from .live_state import LiveStateMirror, apply_event
from .event_log import EventLogView, filter_events
from .hydration import HydrationMonitor, hydration_status

__all__ = [
    "LiveStateMirror",
    "apply_event",
    "EventLogView",
    "filter_events",
    "HydrationMonitor",
    "hydration_status"
]
