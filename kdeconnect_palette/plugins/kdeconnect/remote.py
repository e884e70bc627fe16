from typing import Any, Dict, Optional
from kdeconnect_palette.plugins.kdeconnect.resolver import DEVICES_PATH, DeviceResolver

DEVICE_INTERFACE = "org.kde.kdeconnect.device"


def device_path(device_id: str, kind: Optional[str] = None) -> str:
    path = f"{DEVICES_PATH}/{device_id}"
    if kind:
        path = f"{path}/{kind}"
    return path


def device_interface(kind: Optional[str] = None) -> str:
    if kind:
        return f"{DEVICE_INTERFACE}.{kind}"
    return DEVICE_INTERFACE


class KDEConnectRemote:
    """
    Calls into the daemon on behalf of the resolved device.

    Two object shapes exist. Device methods live on a child object named after
    the kind (ping, findmyphone); plugin methods are called on the device
    object itself with the plugin's interface (battery, share, telephony,
    remotekeyboard). Replies and bus errors are passed through untouched.
    """

    def __init__(self, bus: Any, resolver: DeviceResolver, logger: Any):
        self.bus = bus
        self.resolver = resolver
        self.logger = logger

    async def _target(self, device_id: Optional[str]) -> str:
        return device_id or await self.resolver.resolve_device_id()

    async def call_device_method(self, kind: str, method: str, *args) -> Any:
        device_id = await self.resolver.resolve_device_id()
        return await self.bus.call_method(
            device_path(device_id, kind), device_interface(kind), method, *args
        )

    async def call_plugin(
        self, plugin: str, method: str, *args, device_id: Optional[str] = None
    ) -> Any:
        """Targets `device_id` when given, the resolved device otherwise."""
        device_id = await self._target(device_id)
        return await self.bus.call_method(
            device_path(device_id), device_interface(plugin), method, *args
        )

    async def device_info(self, device_id: Optional[str] = None) -> Dict[str, Any]:
        device_id = await self._target(device_id)
        return await self.bus.get_all_properties(
            device_path(device_id), device_interface()
        )

    async def device_name(self, device_id: Optional[str] = None) -> str:
        info = await self.device_info(device_id)
        return info.get("name", "")

    async def ping(self, message: Optional[str] = None) -> Any:
        if message is None:
            return await self.call_device_method("ping", "sendPing")
        return await self.call_device_method("ping", "sendPing", message)

    async def ring(self) -> Any:
        return await self.call_device_method("findmyphone", "ring")

    async def share_url(self, url: str) -> Any:
        return await self.call_plugin("share", "shareUrl", url)

    async def send_sms(self, number: str, text: str) -> Any:
        return await self.call_plugin("telephony", "sendSms", number, text)

    async def send_key_press(self, text: str) -> Any:
        return await self.call_plugin("remotekeyboard", "sendKeyPress", text)

    async def battery_charge(self, device_id: Optional[str] = None) -> int:
        return await self.call_plugin("battery", "charge", device_id=device_id)

    async def battery_is_charging(self, device_id: Optional[str] = None) -> bool:
        return await self.call_plugin("battery", "isCharging", device_id=device_id)
