#!/usr/bin/env python3
import argparse
import asyncio
import logging
import sys
from typing import Any, List, Optional
from dbus_fast import DBusError
from dbus_fast.errors import (
    AuthError,
    InvalidAddressError,
    InvalidInterfaceNameError,
    InvalidMemberNameError,
    InvalidObjectPathError,
)
from kdeconnect_palette.core.log_setup import setup_logging
from kdeconnect_palette.host.terminal import TerminalHost
from kdeconnect_palette.plugins.kdeconnect.battery_status import (
    BatteryStatusMode,
    Renderer,
    load_renderer,
)
from kdeconnect_palette.plugins.kdeconnect.commands import KDEConnectCommands
from kdeconnect_palette.plugins.kdeconnect.errors import KDEConnectError
from kdeconnect_palette.plugins.kdeconnect.remote import KDEConnectRemote
from kdeconnect_palette.plugins.kdeconnect.resolver import DeviceResolver
from kdeconnect_palette.shared.config_handler import ConfigHandler
from kdeconnect_palette.shared.dbus_helpers import DbusHelpers

QUIT_WORDS = ("quit", "q", "exit")

# raised before anything is sent, e.g. for a typed device id like "my phone"
INVALID_CALL_ERRORS = (
    InvalidObjectPathError,
    InvalidInterfaceNameError,
    InvalidMemberNameError,
)


class KDEConnectApp:
    """Wires the resolver, remote, battery status and commands to one host."""

    def __init__(
        self,
        bus: Any,
        host: Any,
        logger: Any,
        device_id: Optional[str] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.bus = bus
        self.host = host
        self.logger = logger
        self.resolver = DeviceResolver(bus, host, logger, configured_id=device_id)
        self.remote = KDEConnectRemote(bus, self.resolver, logger)
        self.battery_status = BatteryStatusMode(
            bus, self.remote, host, logger, renderer=renderer
        )
        self.commands = KDEConnectCommands(
            self.remote, host, self.battery_status, logger
        )

    async def run_command(self, name: str, *args) -> bool:
        """
        Runs one command and reports its failure through the host.
        Returns True when the command returned without raising.
        """
        table = self.commands.command_table()
        if name not in table:
            self.host.report_error(f"Unknown command: {name}")
            return False
        _, command = table[name]
        try:
            await command(*args)
        except KDEConnectError as e:
            self.logger.warning(f"Command {name} aborted: {e}")
            self.host.report_error(str(e))
            return False
        except DBusError as e:
            self.logger.error(f"Command {name} failed: {e.type}: {e.text}")
            self.host.report_error(f"{e.type}: {e.text}")
            return False
        except INVALID_CALL_ERRORS as e:
            self.logger.error(f"Command {name} failed: {e}")
            self.host.report_error(str(e))
            return False
        return True

    async def palette(self) -> None:
        names = list(self.commands.command_table())
        try:
            while True:
                status = self.host.status_text()
                label = f"{status} Command" if status else "Command"
                name = (await self.host.choose(label, names)).strip()
                if name in QUIT_WORDS:
                    break
                if name:
                    await self.run_command(name)
        except EOFError:
            pass
        finally:
            await self.battery_status.disable()

    async def watch_battery(self) -> bool:
        if not await self.run_command("battery"):
            return False
        try:
            await asyncio.Event().wait()
        finally:
            await self.battery_status.disable()
        return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kdeconnect-palette",
        description="Send commands to a KDE Connect device from the command line.",
    )
    parser.add_argument("-d", "--device", help="device id, overrides config.toml")
    parser.add_argument("-c", "--config", help="path to config.toml")
    parser.add_argument(
        "-s", "--selection", help="text used in place of an editor selection"
    )
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("ping", help="send a ping")
    message = sub.add_parser("message", help="send a ping with a message")
    message.add_argument("text", nargs="?")
    sub.add_parser("ring", help="make the device ring")
    share = sub.add_parser("share", help="share a URL (defaults to the clipboard)")
    share.add_argument("url", nargs="?")
    sms = sub.add_parser("sms", help="send an SMS")
    sms.add_argument("number", nargs="?")
    sms.add_argument("text", nargs="?")
    keys = sub.add_parser("keys", help="send a key sequence")
    keys.add_argument("text", nargs="?")
    sub.add_parser("devices", help="list known devices")
    sub.add_parser("status", help="show the battery status until interrupted")
    sub.add_parser("palette", help="interactive command palette")
    return parser.parse_args(argv)


def command_args(args: argparse.Namespace) -> List[Any]:
    if args.command == "message":
        return [args.text]
    if args.command == "share":
        return [args.url]
    if args.command == "sms":
        return [args.number, args.text]
    if args.command == "keys":
        return [args.text]
    return []


def log_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


async def async_main(args: argparse.Namespace) -> int:
    logger = setup_logging(logging.DEBUG if args.debug else logging.WARNING)
    config = ConfigHandler(logger, args.config)
    if not args.debug:
        logger = setup_logging(
            log_level(config.get_root_setting(["logging", "level"], "WARNING"))
        )
        config.logger = logger
    host = TerminalHost(logger, selection=args.selection)
    renderer_target = config.get_plugin_setting("renderer", "")
    renderer = None
    if renderer_target:
        try:
            renderer = load_renderer(renderer_target)
        except (ImportError, AttributeError, ValueError, TypeError) as e:
            host.report_error(f"Invalid renderer {renderer_target!r}: {e}")
            return 1
    try:
        bus = await DbusHelpers.connect(logger=logger)
    except (OSError, AuthError, InvalidAddressError, DBusError) as e:
        logger.error(f"Could not connect to the session bus: {e}")
        host.report_error(f"Could not connect to the session bus: {e}")
        return 1
    app = KDEConnectApp(
        bus,
        host,
        logger,
        device_id=args.device or config.get_plugin_setting("device_id", ""),
        renderer=renderer,
    )
    try:
        if args.command == "palette":
            await app.palette()
            return 0
        if args.command == "status":
            return 0 if await app.watch_battery() else 1
        ok = await app.run_command(args.command, *command_args(args))
        return 0 if ok else 1
    finally:
        bus.disconnect()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        sys.exit(asyncio.run(async_main(args)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
