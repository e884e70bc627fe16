from typing import Any, Callable, Dict, List
import structlog
from dbus_fast import BusType, DBusError, Message
from dbus_fast.aio import MessageBus
from dbus_fast.constants import MessageType

KDECONNECT_SERVICE = "org.kde.kdeconnect"
DBUS_SERVICE = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"


def signature_for(args) -> str:
    """Builds a D-Bus signature from plain Python arguments."""
    codes = []
    for arg in args:
        # bool is a subclass of int, check it first
        if isinstance(arg, bool):
            codes.append("b")
        elif isinstance(arg, int):
            codes.append("i")
        elif isinstance(arg, str):
            codes.append("s")
        elif isinstance(arg, (list, tuple)) and all(isinstance(a, str) for a in arg):
            codes.append("as")
        else:
            raise TypeError(f"Unsupported D-Bus argument type: {type(arg).__name__}")
    return "".join(codes)


def unwrap_reply(reply: Message) -> Any:
    """Raises error replies verbatim, unpacks method returns."""
    if reply.message_type == MessageType.ERROR:
        text = reply.body[0] if reply.body else ""
        raise DBusError(reply.error_name, text)
    body = list(reply.body or [])
    if not body:
        return None
    if len(body) == 1:
        return body[0]
    return body


class SignalSubscription:
    """
    Handle returned by DbusHelpers.subscribe. Releasing it removes the
    message handler and the bus match rule.
    """

    def __init__(self, helpers: "DbusHelpers", match_rule: str, handler: Callable):
        self._helpers = helpers
        self.match_rule = match_rule
        self._handler = handler
        self.active = True

    async def release(self) -> None:
        if not self.active:
            return
        self.active = False
        self._helpers.bus.remove_message_handler(self._handler)
        await self._helpers.call_bus_daemon("RemoveMatch", self.match_rule)


class DbusHelpers:
    """
    Session bus access to the KDE Connect daemon.
    Uses low-level messages so no introspection data is needed for calls.
    """

    def __init__(self, bus: Any, service: str = KDECONNECT_SERVICE, logger=None):
        self.bus = bus
        self.service = service
        self.logger = logger or structlog.get_logger(__name__)

    @classmethod
    async def connect(
        cls, service: str = KDECONNECT_SERVICE, logger=None
    ) -> "DbusHelpers":
        bus = await MessageBus(bus_type=BusType.SESSION).connect()
        return cls(bus, service=service, logger=logger)

    def disconnect(self) -> None:
        self.bus.disconnect()

    async def _call(
        self,
        destination: str,
        path: str,
        interface: str,
        member: str,
        args: List[Any],
    ) -> Any:
        reply = await self.bus.call(
            Message(
                destination=destination,
                path=path,
                interface=interface,
                member=member,
                signature=signature_for(args),
                body=list(args),
            )
        )
        return unwrap_reply(reply)

    async def call_bus_daemon(self, member: str, *args) -> Any:
        return await self._call(DBUS_SERVICE, DBUS_PATH, DBUS_SERVICE, member, list(args))

    async def call_method(self, path: str, interface: str, method: str, *args) -> Any:
        """Calls `method` on the daemon object at `path`. Bus errors propagate."""
        self.logger.debug(f"D-Bus call {interface}.{method} on {path} args={args}")
        return await self._call(self.service, path, interface, method, list(args))

    async def list_children(self, path: str) -> List[str]:
        """Returns the names of the child nodes under `path`."""
        node = await self.bus.introspect(self.service, path)
        return [child.name for child in node.nodes if child.name]

    async def get_all_properties(self, path: str, interface: str) -> Dict[str, Any]:
        props = await self.call_method(path, PROPERTIES_INTERFACE, "GetAll", interface)
        return {key: getattr(value, "value", value) for key, value in props.items()}

    async def subscribe(
        self,
        path: str,
        interface: str,
        signal: str,
        handler: Callable[..., Any],
    ) -> SignalSubscription:
        """
        Invokes `handler(*body)` for every `interface.signal` emitted at `path`.
        """
        match_rule = (
            f"type='signal',sender='{self.service}',"
            f"path='{path}',interface='{interface}',member='{signal}'"
        )

        def message_handler(message):
            if (
                message.message_type == MessageType.SIGNAL
                and message.path == path
                and message.interface == interface
                and message.member == signal
            ):
                handler(*(message.body or []))

        await self.call_bus_daemon("AddMatch", match_rule)
        self.bus.add_message_handler(message_handler)
        self.logger.debug(f"Subscribed to {interface}.{signal} on {path}")
        return SignalSubscription(self, match_rule, message_handler)
