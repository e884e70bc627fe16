"""Shared fakes for the bus, the host and the logger."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest

from dbus_fast.constants import MessageType
from dbus_fast.introspection import Node
from kdeconnect_palette.host.base import Host

DEVICES_XML = """
<node>
  <node name="abc123"/>
  <node name="def456"/>
</node>
"""


class FakeLogger:
    def __init__(self):
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def _log(self, level, message, **kwargs):
        self.records.append((level, message, kwargs))

    def debug(self, message, **kwargs):
        self._log("debug", message, **kwargs)

    def info(self, message, **kwargs):
        self._log("info", message, **kwargs)

    def warning(self, message, **kwargs):
        self._log("warning", message, **kwargs)

    def error(self, message, **kwargs):
        self._log("error", message, **kwargs)

    def exception(self, message, **kwargs):
        self._log("exception", message, **kwargs)

    def messages(self, level: str) -> List[str]:
        return [message for lvl, message, _ in self.records if lvl == level]


def method_return(*body):
    return SimpleNamespace(message_type=MessageType.METHOD_RETURN, body=list(body))


class StubMessageBus:
    """Stands in for dbus_fast.aio.MessageBus underneath a real DbusHelpers."""

    def __init__(self, replies=None):
        self.replies = replies or {}
        self.sent = []
        self.handlers = []
        self.introspected = []

    async def call(self, message):
        self.sent.append(message)
        return self.replies.get(message.member, method_return())

    async def introspect(self, service, path):
        self.introspected.append((service, path))
        return Node.parse(DEVICES_XML)

    def add_message_handler(self, handler):
        self.handlers.append(handler)

    def remove_message_handler(self, handler):
        self.handlers.remove(handler)

    def deliver(self, message):
        for handler in list(self.handlers):
            handler(message)


class FakeSubscription:
    def __init__(self, path, interface, signal, handler):
        self.path = path
        self.interface = interface
        self.signal = signal
        self.handler = handler
        self.active = True

    async def release(self):
        self.active = False


class FakeBus:
    """In-memory stand-in for DbusHelpers."""

    def __init__(
        self,
        devices: Optional[List[str]] = None,
        properties: Optional[Dict[str, Dict[str, Any]]] = None,
        replies: Optional[Dict[Tuple[str, str], Any]] = None,
    ):
        self.devices = list(devices or [])
        self.properties = properties or {}
        self.replies = replies or {}
        self.calls: List[Tuple[str, str, str, tuple]] = []
        self.enumerations: List[str] = []
        self.property_requests: List[Tuple[str, str]] = []
        self.subscriptions: List[FakeSubscription] = []

    async def list_children(self, path):
        self.enumerations.append(path)
        return list(self.devices)

    async def get_all_properties(self, path, interface):
        self.property_requests.append((path, interface))
        return dict(self.properties.get(path, {}))

    async def call_method(self, path, interface, method, *args):
        self.calls.append((path, interface, method, args))
        reply = self.replies.get((interface, method))
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def subscribe(self, path, interface, signal, handler):
        subscription = FakeSubscription(path, interface, signal, handler)
        self.subscriptions.append(subscription)
        return subscription

    @property
    def active_subscriptions(self) -> List[FakeSubscription]:
        return [s for s in self.subscriptions if s.active]

    def emit(self, path, interface, signal, *body):
        for subscription in self.active_subscriptions:
            if (
                subscription.path == path
                and subscription.interface == interface
                and subscription.signal == signal
            ):
                subscription.handler(*body)


class FakeHost(Host):
    def __init__(
        self,
        answers: Optional[List[str]] = None,
        selection: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__()
        self.answers = list(answers or [])
        self.selection = selection
        self.url = url
        self.prompts: List[str] = []
        self.choices: List[Tuple[str, List[str]]] = []
        self.notifications: List[str] = []
        self.errors: List[str] = []
        self.status_updates: List[Optional[Tuple[str, str]]] = []
        self.url_requests = 0

    def _answer(self) -> str:
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    async def prompt(self, label):
        self.prompts.append(label)
        return self._answer()

    async def choose(self, label, options):
        self.choices.append((label, list(options)))
        return self._answer()

    def selected_text(self):
        return self.selection

    def url_at_point(self):
        self.url_requests += 1
        return self.url

    def on_status_changed(self, status_line):
        self.status_updates.append(status_line.current())

    def notify(self, message):
        self.notifications.append(message)

    def report_error(self, message):
        self.errors.append(message)


@pytest.fixture
def logger():
    return FakeLogger()


@pytest.fixture
def host():
    return FakeHost()
