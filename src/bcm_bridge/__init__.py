from bcm_bridge.bridge import BridgeClient
from bcm_bridge.cancel import CancelController, CancelSignal, compose_timeout
from bcm_bridge.formatters import courses_to_text, enrollments_to_text, faqs_to_text
from bcm_bridge.utils import Config, Failure, Outcome, Success

__all__ = [
    "BridgeClient",
    "CancelController",
    "CancelSignal",
    "compose_timeout",
    "courses_to_text",
    "enrollments_to_text",
    "faqs_to_text",
    "Config",
    "Failure",
    "Outcome",
    "Success",
]
