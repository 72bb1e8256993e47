"""Payment gateway factory.

``get_gateway()`` returns the active adapter (a ``FakeGateway`` unless one
was installed with ``set_gateway()``). Tests call ``reset_gateway()`` to
start from a fresh fake.
"""

from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
