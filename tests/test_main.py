"""Tests for the application wiring and command line parsing."""

import asyncio
import logging

import pytest

from conftest import FakeBus, FakeHost, StubMessageBus
from dbus_fast import DBusError
from kdeconnect_palette import main as main_module
from kdeconnect_palette.main import (
    KDEConnectApp,
    command_args,
    log_level,
    parse_args,
)
from kdeconnect_palette.shared.dbus_helpers import DbusHelpers


def test_run_command_reports_missing_device(logger):
    bus = FakeBus(devices=[])
    host = FakeHost()
    app = KDEConnectApp(bus, host, logger)

    assert asyncio.run(app.run_command("ping")) is False
    assert host.errors == ["No KDE Connect device found"]
    assert bus.calls == []
    assert logger.messages("warning")


def test_run_command_reports_bus_errors(logger):
    error = DBusError("org.freedesktop.DBus.Error.ServiceUnknown", "not running")
    bus = FakeBus(replies={("org.kde.kdeconnect.device.findmyphone", "ring"): error})
    host = FakeHost()
    app = KDEConnectApp(bus, host, logger, device_id="abc123")

    assert asyncio.run(app.run_command("ring")) is False
    assert host.errors == ["org.freedesktop.DBus.Error.ServiceUnknown: not running"]


def test_run_command_unknown_name(logger):
    host = FakeHost()
    app = KDEConnectApp(FakeBus(), host, logger)

    assert asyncio.run(app.run_command("dance")) is False
    assert host.errors == ["Unknown command: dance"]


def test_run_command_passes_arguments(logger):
    bus = FakeBus()
    app = KDEConnectApp(bus, FakeHost(), logger, device_id="abc123")

    assert asyncio.run(app.run_command("sms", "+1555", "hi")) is True
    assert bus.calls[0][2:] == ("sendSms", ("+1555", "hi"))


def test_palette_runs_until_quit(logger):
    bus = FakeBus()
    host = FakeHost(answers=["ping", "", "ring", "quit", "ping"])
    app = KDEConnectApp(bus, host, logger, device_id="abc123")

    asyncio.run(app.palette())

    assert [call[2] for call in bus.calls] == ["sendPing", "ring"]
    assert host.choices[0] == ("Command", list(app.commands.command_table()))
    assert host.answers == ["ping"]


def test_palette_stops_at_end_of_input_and_disables_battery(logger):
    bus = FakeBus(
        replies={
            ("org.kde.kdeconnect.device.battery", "isCharging"): True,
            ("org.kde.kdeconnect.device.battery", "charge"): 90,
        },
    )
    host = FakeHost(answers=["battery"])
    app = KDEConnectApp(
        bus,
        host,
        logger,
        device_id="abc123",
        renderer=lambda charging, charge: (f"[{charge}%]", ""),
    )

    asyncio.run(app.palette())

    assert host.choices[1][0] == "[90%] Command"
    assert not app.battery_status.enabled
    assert bus.active_subscriptions == []
    assert host.status_lines == []


def test_parse_args_with_command_arguments():
    args = parse_args(["--device", "abc123", "sms", "+1555", "hello"])

    assert args.device == "abc123"
    assert args.command == "sms"
    assert command_args(args) == ["+1555", "hello"]


def test_parse_args_optional_arguments_default_to_none():
    assert command_args(parse_args(["share"])) == [None]
    assert command_args(parse_args(["message"])) == [None]
    assert command_args(parse_args(["ping"])) == []


def test_parse_args_requires_a_command():
    with pytest.raises(SystemExit):
        parse_args([])


def test_log_level():
    assert log_level("debug") == logging.DEBUG
    assert log_level("ERROR") == logging.ERROR
    assert log_level("loud") == logging.WARNING


def test_main_reports_connection_failure(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))

    async def connect(**kwargs):
        raise OSError("no session bus")

    monkeypatch.setattr(main_module.DbusHelpers, "connect", connect)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--config", str(tmp_path / "config.toml"), "ping"])

    assert excinfo.value.code == 1
    assert "no session bus" in capsys.readouterr().out


@pytest.mark.parametrize("typed_id", ["my phone", "my-phone", ""])
def test_run_command_reports_typed_id_that_is_not_a_valid_path(logger, typed_id):
    bus = StubMessageBus()
    host = FakeHost(answers=[typed_id])
    app = KDEConnectApp(DbusHelpers(bus, logger=logger), host, logger)

    assert asyncio.run(app.run_command("ping")) is False
    assert host.choices == [("Device", ["abc123", "def456"])]
    assert len(host.errors) == 1
    assert "invalid object path" in host.errors[0]
    assert bus.sent == []


def test_run_command_reports_bad_configured_id(logger):
    bus = StubMessageBus()
    host = FakeHost()
    app = KDEConnectApp(DbusHelpers(bus, logger=logger), host, logger, device_id="a b")

    assert asyncio.run(app.run_command("share", "https://example.com")) is False
    assert len(host.errors) == 1
    assert bus.sent == []


def test_palette_keeps_running_after_a_bad_device_id(logger):
    bus = StubMessageBus()
    host = FakeHost(answers=["ping", "my phone", "reset", "ping", "abc123", "quit"])
    app = KDEConnectApp(DbusHelpers(bus, logger=logger), host, logger)

    asyncio.run(app.palette())

    assert len(host.errors) == 1
    assert [(m.path, m.member) for m in bus.sent] == [
        ("/modules/kdeconnect/devices/abc123/ping", "sendPing")
    ]
    assert host.answers == []
