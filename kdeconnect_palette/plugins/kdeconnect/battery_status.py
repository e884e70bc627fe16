import asyncio
import importlib
import inspect
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple, Union
from kdeconnect_palette.plugins.kdeconnect.remote import (
    KDEConnectRemote,
    device_interface,
    device_path,
)
from kdeconnect_palette.plugins.kdeconnect.status_line import StatusLine

BATTERY_INTERFACE = device_interface("battery")
STATE_CHANGED_SIGNAL = "stateChanged"
CHARGE_CHANGED_SIGNAL = "chargeChanged"

RenderResult = Tuple[str, str]
Renderer = Callable[[bool, int], Union[RenderResult, Awaitable[RenderResult]]]


def format_battery(device_name: str, is_charging: bool, charge: int) -> RenderResult:
    state = "charging" if is_charging else "discharging"
    return f"[{charge}%]", f"{device_name}: {charge}% ({state})"


def load_renderer(target: str) -> Renderer:
    """
    Imports a renderer given as 'package.module:function'.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(
            f"Renderer must be given as 'package.module:function', got {target!r}"
        )
    module = importlib.import_module(module_name)
    renderer = getattr(module, attr)
    if not callable(renderer):
        raise TypeError(f"Renderer {target!r} is not callable")
    return renderer


class BatteryStatusMode:
    """
    Keeps the status line in sync with the device's battery.

    The daemon reports the charge and the charging flag through two separate
    signals, each carrying one value. Every handler fetches the other value
    before rendering so neither half of the status goes stale.

    The device is fixed when the mode is enabled. Fetches and the default
    renderer keep using it even if the resolver later picks another device.
    """

    def __init__(
        self,
        bus: Any,
        remote: KDEConnectRemote,
        host: Any,
        logger: Any,
        status_line: Optional[StatusLine] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.bus = bus
        self.remote = remote
        self.host = host
        self.logger = logger
        self.status_line = status_line or StatusLine()
        self.renderer: Renderer = renderer or self.default_renderer
        self.enabled = False
        self.device_id: Optional[str] = None
        self._subscriptions: List[Any] = []
        self._running_tasks: Set[asyncio.Task] = set()

    async def enable(self) -> None:
        if self.enabled:
            return
        device_id = await self.remote.resolver.resolve_device_id()
        path = device_path(device_id)
        self.device_id = device_id
        self.enabled = True
        try:
            self._subscriptions.append(
                await self.bus.subscribe(
                    path,
                    BATTERY_INTERFACE,
                    STATE_CHANGED_SIGNAL,
                    self._on_state_changed,
                )
            )
            self._subscriptions.append(
                await self.bus.subscribe(
                    path,
                    BATTERY_INTERFACE,
                    CHARGE_CHANGED_SIGNAL,
                    self._on_charge_changed,
                )
            )
            self.status_line.init()
            self.host.register_status(self.status_line)
            is_charging = await self.remote.battery_is_charging(device_id)
            charge = await self.remote.battery_charge(device_id)
            await self.render(is_charging, charge)
        except BaseException:
            await self.disable()
            raise
        self.logger.info(f"Battery status enabled for {device_id}")

    async def disable(self) -> None:
        if not self.enabled:
            return
        self.enabled = False
        for task in list(self._running_tasks):
            task.cancel()
        self._running_tasks.clear()
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                await subscription.release()
            except Exception as e:
                self.logger.warning(f"Failed to release battery subscription: {e}")
        self.status_line.teardown()
        self.host.unregister_status(self.status_line)
        self.logger.info(f"Battery status disabled for {self.device_id}")
        self.device_id = None

    async def toggle(self) -> bool:
        if self.enabled:
            await self.disable()
        else:
            await self.enable()
        return self.enabled

    async def on_charging_state_changed(self, is_charging: bool) -> None:
        charge = await self.remote.battery_charge(self.device_id)
        await self.render(bool(is_charging), charge)

    async def on_charge_changed(self, charge: int) -> None:
        is_charging = await self.remote.battery_is_charging(self.device_id)
        await self.render(is_charging, int(charge))

    async def default_renderer(self, is_charging: bool, charge: int) -> RenderResult:
        # name is looked up on every render, nothing is cached
        device_name = await self.remote.device_name(self.device_id)
        return format_battery(device_name, is_charging, charge)

    async def render(self, is_charging: bool, charge: int) -> None:
        result = self.renderer(is_charging, charge)
        if inspect.isawaitable(result):
            result = await result
        display, detail = result
        if not self.enabled:
            return
        self.status_line.update(display, detail)
        self.logger.debug(f"Battery status: {display} {detail}")

    def _on_state_changed(self, is_charging: bool) -> None:
        self._spawn(self.on_charging_state_changed(is_charging))

    def _on_charge_changed(self, charge: int) -> None:
        self._spawn(self.on_charge_changed(charge))

    def _spawn(self, coro) -> None:
        if not self.enabled:
            coro.close()
            return
        task = asyncio.get_running_loop().create_task(coro)
        self._running_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._running_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(
                f"Battery status update failed: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )
