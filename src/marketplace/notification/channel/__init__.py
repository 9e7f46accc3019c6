"""Channel adapter registry.

Fake adapters are used unless a real adapter is installed with
``set_channel`` (application start-up or tests).
"""

from marketplace.notification.notification import NotificationChannel

_channel_instances: dict[str, object] = {}


def _default_adapter(channel_type: str):
    from marketplace.notification.channel.fakes import FakeEmailAdapter, FakeInvoiceAdapter, FakeSMSAdapter

    factories = {
        NotificationChannel.EMAIL.value: FakeEmailAdapter,
        NotificationChannel.SMS.value: FakeSMSAdapter,
        NotificationChannel.INVOICE.value: FakeInvoiceAdapter,
    }
    if channel_type not in factories:
        raise ValueError(f"Unknown channel type: {channel_type}")
    return factories[channel_type]()


def get_channel(channel_type: str):
    """Return the configured adapter for a NotificationChannel value."""
    if channel_type not in _channel_instances:
        _channel_instances[channel_type] = _default_adapter(channel_type)
    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels() -> None:
    """Drop all installed adapters (useful for testing)."""
    _channel_instances.clear()
