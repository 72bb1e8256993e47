"""Notifier registry.

``get_notifier()`` returns the active adapter, a ``FakeNotifier`` by
default; ``set_notifier()`` installs another and ``reset_notifier()``
returns to a fresh fake.
"""

from storefront.notification.fake_adapter import FakeNotifier
from storefront.notification.port import Notifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = FakeNotifier()
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
