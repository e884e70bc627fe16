from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from kdeconnect_palette.plugins.kdeconnect.battery_status import BatteryStatusMode
from kdeconnect_palette.plugins.kdeconnect.remote import KDEConnectRemote
from kdeconnect_palette.plugins.kdeconnect.resolver import DeviceResolver

Command = Callable[..., Awaitable[Any]]


class KDEConnectCommands:
    """
    User-facing actions. Each one gathers its arguments, then issues exactly
    one call through the remote. A call that returns counts as done; the
    daemon's answer is not inspected.
    """

    def __init__(
        self,
        remote: KDEConnectRemote,
        host: Any,
        battery_status: BatteryStatusMode,
        logger: Any,
    ):
        self.remote = remote
        self.host = host
        self.battery_status = battery_status
        self.logger = logger

    @property
    def resolver(self) -> DeviceResolver:
        return self.remote.resolver

    async def _argument(
        self,
        value: Optional[str],
        label: str,
        preferred: Optional[Callable[[], Optional[str]]] = None,
    ) -> str:
        """Explicit value, then `preferred()` when given, then a prompt."""
        if value:
            return value
        found = preferred() if preferred else None
        if found:
            return found
        return await self.host.prompt(label)

    async def send_ping(self) -> None:
        await self.remote.ping()
        self.host.notify("Ping sent")

    async def send_message(self, text: Optional[str] = None) -> None:
        text = await self._argument(text, "Message")
        await self.remote.ping(text)
        self.host.notify("Message sent")

    async def ring_device(self) -> None:
        await self.remote.ring()
        self.host.notify("Ringing device")

    async def share_url(self, url: Optional[str] = None) -> None:
        url = await self._argument(url, "URL", self.host.url_at_point)
        await self.remote.share_url(url)
        self.host.notify(f"Shared {url}")

    async def send_sms(
        self, number: Optional[str] = None, text: Optional[str] = None
    ) -> None:
        number = await self._argument(number, "Phone number")
        text = await self._argument(text, "SMS text", self.host.selected_text)
        await self.remote.send_sms(number, text)
        self.host.notify(f"SMS sent to {number}")

    async def send_key_sequence(self, text: Optional[str] = None) -> None:
        text = await self._argument(text, "Keys", self.host.selected_text)
        await self.remote.send_key_press(text)
        self.host.notify("Keys sent")

    async def toggle_battery_status(self) -> bool:
        enabled = await self.battery_status.toggle()
        self.host.notify(f"Battery status {'on' if enabled else 'off'}")
        return enabled

    async def list_devices(self) -> List[Tuple[str, str]]:
        devices = []
        for device_id in await self.resolver.list_devices():
            info = await self.remote.device_info(device_id)
            devices.append((device_id, info.get("name", "")))
        if not devices:
            self.host.notify("No devices found")
        for device_id, name in devices:
            self.host.notify(f"{device_id}  {name}")
        return devices

    async def reset_device(self) -> None:
        self.resolver.reset()
        self.host.notify("Device selection cleared")

    def command_table(self) -> Dict[str, Tuple[str, Command]]:
        return {
            "ping": ("Send a ping", self.send_ping),
            "message": ("Send a ping with a message", self.send_message),
            "ring": ("Make the device ring", self.ring_device),
            "share": ("Share a URL", self.share_url),
            "sms": ("Send an SMS", self.send_sms),
            "keys": ("Send a key sequence", self.send_key_sequence),
            "battery": ("Toggle the battery status", self.toggle_battery_status),
            "devices": ("List devices", self.list_devices),
            "reset": ("Forget the selected device", self.reset_device),
        }
