"""Fake notifier: records messages in memory for test assertions."""

from uuid import uuid4

from storefront.notification.port import Notifier


class NotificationDeliveryError(Exception):
    pass


class FakeNotifier(Notifier):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, email: str, template: str, data: dict) -> None:
        if not self.should_succeed:
            raise NotificationDeliveryError(self.failure_reason)

        self.sent.append(
            {
                "message_id": f"msg-{uuid4().hex[:12]}",
                "email": email,
                "template": template,
                "data": dict(data),
            }
        )

    def templates_sent_to(self, email: str) -> list[str]:
        return [message["template"] for message in self.sent if message["email"] == email]

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
