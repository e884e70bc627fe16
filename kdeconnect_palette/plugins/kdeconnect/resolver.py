from typing import Any, List, Optional
from kdeconnect_palette.plugins.kdeconnect.errors import NoDeviceFound

DEVICES_PATH = "/modules/kdeconnect/devices"


class DeviceResolver:
    """
    Picks the device every command targets.

    A configured id wins and is never checked against the daemon. Without one,
    the daemon's devices are enumerated: a single device is taken as is,
    several are offered to the host for a choice. The first successful answer
    is kept for the rest of the process, until reset() is called.
    """

    def __init__(
        self,
        bus: Any,
        host: Any,
        logger: Any,
        configured_id: Optional[str] = None,
    ):
        self.bus = bus
        self.host = host
        self.logger = logger
        self.configured_id = configured_id or None
        self._device_id: Optional[str] = None

    @property
    def cached_device_id(self) -> Optional[str]:
        return self._device_id

    async def list_devices(self) -> List[str]:
        return await self.bus.list_children(DEVICES_PATH)

    async def resolve_device_id(self) -> str:
        if self.configured_id:
            return self.configured_id
        if self._device_id:
            return self._device_id
        device_ids = await self.list_devices()
        if not device_ids:
            raise NoDeviceFound()
        if len(device_ids) == 1:
            device_id = device_ids[0]
            self.logger.info(f"Using the only available device: {device_id}")
        else:
            # free text is accepted, an unknown id fails on the next call
            device_id = await self.host.choose("Device", device_ids)
            self.logger.info(f"Device selected: {device_id}")
        self._device_id = device_id
        return device_id

    def reset(self) -> None:
        if self._device_id:
            self.logger.info(f"Forgetting selected device {self._device_id}")
        self._device_id = None
