"""Notification port: abstract interface for customer notifications."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    @abstractmethod
    def notify(self, email: str, template: str, data: dict) -> None:
        """Deliver a templated message. Raises on delivery failure."""
        ...
