"""Tests for launch dispatching."""

import importlib
import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dexlaunch import launch as launch_mod
from dexlaunch.errors import (
    ActionExecKeyNotFound,
    ActionNotFound,
    BusActivationError,
    DeprecatedFieldCode,
    EmptyExecString,
    ExecIOError,
    MissingExecKey,
    MissingShellEnvironment,
    NonZeroStatusCode,
    UnmatchedQuote,
)
from dexlaunch.launch import (
    LaunchStrategy,
    choose_strategy,
    is_bus_actionable,
    launch,
    launch_action,
    path2url,
    platform_data,
    resolve_command,
    select_exec,
)
from dexlaunch.terminal import Terminal

from conftest import FakeEntry


@pytest.fixture
def popen(monkeypatch):
    "Replaces subprocess.Popen, started process is still running"
    proc = MagicMock()
    proc.poll.return_value = None
    mock = MagicMock(return_value=proc)
    monkeypatch.setattr(launch_mod.subprocess, "Popen", mock)
    return mock


@pytest.fixture
def no_bus(monkeypatch):
    monkeypatch.setattr(launch_mod, "session_bus", lambda: None)


@pytest.fixture
def bus(monkeypatch):
    mock = MagicMock()
    mock.is_activatable.return_value = True
    monkeypatch.setattr(launch_mod, "session_bus", lambda: mock)
    monkeypatch.delenv("XDG_ACTIVATION_TOKEN", raising=False)
    monkeypatch.delenv("DESKTOP_STARTUP_ID", raising=False)
    return mock


def activatable_entry(**kwargs):
    return FakeEntry(
        exec="activatable %U",
        dbus_activatable=True,
        app_id="org.example.App",
        file_path="/usr/share/applications/org.example.App.desktop",
        **kwargs,
    )


class TestSelectExec:
    def test_plain_exec(self):
        assert select_exec(FakeEntry(exec="app")) == "app"

    def test_missing_exec(self):
        entry = FakeEntry()
        with pytest.raises(MissingExecKey) as excinfo:
            select_exec(entry)
        assert excinfo.value.desktop_entry == entry.file_path

    def test_action_exec(self):
        entry = FakeEntry(actions="new;", action_execs={"new": "app --new"})
        assert select_exec(entry, "new") == "app --new"

    def test_undeclared_action(self):
        # Given exec exists for the action, but it is not listed in Actions
        entry = FakeEntry(actions="other;", action_execs={"new": "app --new"})
        # When
        with pytest.raises(ActionNotFound) as excinfo:
            select_exec(entry, "new")
        # Then
        assert excinfo.value.action == "new"
        assert excinfo.value.desktop_entry == entry.file_path
        assert "new" in str(excinfo.value)

    def test_no_actions_at_all(self):
        with pytest.raises(ActionNotFound):
            select_exec(FakeEntry(exec="app"), "new")

    def test_action_without_exec(self):
        entry = FakeEntry(actions="new", action_execs={})
        with pytest.raises(ActionExecKeyNotFound) as excinfo:
            select_exec(entry, "new")
        assert excinfo.value.action == "new"


class TestStrategy:
    def test_no_bus_plain(self):
        assert choose_strategy(FakeEntry(), None) is LaunchStrategy.SHELL

    def test_no_bus_terminal(self):
        assert choose_strategy(FakeEntry(terminal=True), None) is LaunchStrategy.TERMINAL_SHELL

    def test_bus_activatable(self):
        bus = MagicMock()
        bus.is_activatable.return_value = True
        assert choose_strategy(activatable_entry(terminal=True), bus) is LaunchStrategy.BUS
        bus.is_activatable.assert_called_once_with("org.example.App")

    def test_bus_but_not_dbus_activatable(self):
        bus = MagicMock()
        assert choose_strategy(FakeEntry(), bus) is LaunchStrategy.SHELL
        bus.is_activatable.assert_not_called()

    def test_name_unknown_to_bus(self):
        bus = MagicMock()
        bus.is_activatable.return_value = False
        assert not is_bus_actionable(activatable_entry(), bus)

    def test_invalid_bus_name(self):
        bus = MagicMock()
        entry = FakeEntry(dbus_activatable=True, file_path="/x/firefox.desktop")
        assert not is_bus_actionable(entry, bus)
        bus.is_activatable.assert_not_called()

    def test_query_failure_degrades(self):
        bus = MagicMock()
        bus.is_activatable.side_effect = RuntimeError("bus went away")
        assert not is_bus_actionable(activatable_entry(), bus)

    def test_app_id_from_file_name(self):
        bus = MagicMock()
        bus.is_activatable.return_value = True
        entry = FakeEntry(
            dbus_activatable=True,
            file_path="/usr/share/applications/org.gnome.Maps.desktop",
        )
        assert is_bus_actionable(entry, bus)
        bus.is_activatable.assert_called_once_with("org.gnome.Maps")


class TestResolveCommand:
    def test_scenario_file_and_icon(self, shell):
        # Given
        entry = FakeEntry(exec="app %f %i", icon="app-icon")
        # When
        resolved = resolve_command(entry, ["/tmp/x"])
        # Then
        assert resolved.args == ["app", "/tmp/x", "app-icon"]
        assert resolved.argv == [shell, "-c", "app /tmp/x app-icon"]
        assert resolved.executable == shell
        assert resolved.strategy is LaunchStrategy.SHELL

    def test_terminal_wraps_command(self, shell, monkeypatch):
        # Given
        monkeypatch.setattr(
            launch_mod, "detect_terminal", lambda: Terminal("/usr/bin/konsole", "-e")
        )
        entry = FakeEntry(exec="htop", terminal=True)
        # When
        resolved = resolve_command(entry)
        # Then
        assert resolved.strategy is LaunchStrategy.TERMINAL_SHELL
        assert resolved.argv == [shell, "-c", "/usr/bin/konsole -e htop"]

    def test_working_directory(self, shell):
        resolved = resolve_command(FakeEntry(exec="app", path="/srv/work"))
        assert resolved.cwd == Path("/srv/work")

    def test_gpu_environment_only_when_requested(self, shell, monkeypatch):
        gpu_env = MagicMock(return_value={"DRI_PRIME": "1"})
        monkeypatch.setattr(launch_mod, "gpu_environment", gpu_env)
        entry = FakeEntry(exec="app")

        assert resolve_command(entry).env == {}
        gpu_env.assert_not_called()

        assert resolve_command(entry, prefer_non_default_gpu=True).env == {"DRI_PRIME": "1"}

    def test_missing_shell(self, monkeypatch):
        monkeypatch.delenv("SHELL", raising=False)
        with pytest.raises(MissingShellEnvironment):
            resolve_command(FakeEntry(exec="app"))

    def test_errors_come_before_bus_connection(self, shell):
        # Given
        connect_bus = MagicMock()
        # When
        with pytest.raises(DeprecatedFieldCode):
            resolve_command(FakeEntry(exec="app %d"), connect_bus=connect_bus)
        # Then
        connect_bus.assert_not_called()

    def test_quoted_exec(self, shell):
        resolved = resolve_command(FakeEntry(exec='"app arg"'))
        assert resolved.args == ["app", "arg"]

    def test_unmatched_quote(self, shell):
        with pytest.raises(UnmatchedQuote):
            resolve_command(FakeEntry(exec='"app arg'))

    def test_bus_strategy_needs_no_shell(self, monkeypatch):
        # Given
        monkeypatch.delenv("SHELL", raising=False)
        bus = MagicMock()
        bus.is_activatable.return_value = True
        # When
        resolved = resolve_command(activatable_entry(), connect_bus=lambda: bus)
        # Then
        assert resolved.strategy is LaunchStrategy.BUS
        assert resolved.argv == []
        assert resolved.app_id == "org.example.App"
        assert resolved.bus is bus


class TestLaunch:
    def test_spawns_shell(self, shell, popen, no_bus):
        # Given
        entry = FakeEntry(exec="app %f %i", icon="app-icon", path="/tmp")
        # When
        launch(entry, ["/tmp/x"])
        # Then
        popen.assert_called_once_with(
            [shell, "-c", "app /tmp/x app-icon"],
            cwd=Path("/tmp"),
            env=None,
            start_new_session=True,
        )

    def test_gpu_environment_is_merged(self, shell, popen, no_bus, monkeypatch):
        # Given
        monkeypatch.setattr(launch_mod, "gpu_environment", lambda: {"DRI_PRIME": "1"})
        monkeypatch.setenv("KEEP_ME", "yes")
        # When
        launch(FakeEntry(exec="app"), prefer_non_default_gpu=True)
        # Then
        env = popen.call_args.kwargs["env"]
        assert env["DRI_PRIME"] == "1"
        assert env["KEEP_ME"] == "yes"
        assert "KEEP_ME" in os.environ

    def test_empty_exec_string(self, shell, popen, no_bus):
        with pytest.raises(EmptyExecString):
            launch(FakeEntry(exec="%f"), [])
        popen.assert_not_called()

    def test_immediate_failure_status(self, shell, popen, no_bus):
        # Given
        popen.return_value.poll.return_value = 127
        # When
        with pytest.raises(NonZeroStatusCode) as excinfo:
            launch(FakeEntry(exec="missing-binary"))
        # Then
        assert excinfo.value.code == 127
        assert excinfo.value.exec_string == "missing-binary"

    def test_already_exited_successfully(self, shell, popen, no_bus):
        popen.return_value.poll.return_value = 0
        assert launch(FakeEntry(exec="true")) is popen.return_value

    def test_spawn_failure_keeps_os_error(self, shell, popen, no_bus):
        # Given
        popen.side_effect = FileNotFoundError(2, "No such file or directory")
        # When
        with pytest.raises(ExecIOError) as excinfo:
            launch(FakeEntry(exec="app"))
        # Then
        assert excinfo.value.errno == 2
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_action(self, shell, popen, no_bus):
        # Given
        entry = FakeEntry(
            exec="app", actions="new-window;", action_execs={"new-window": "app --new %U"}
        )
        # When
        launch_action(entry, "new-window", ["a", "b"])
        # Then
        assert popen.call_args.args[0] == [shell, "-c", "app --new a b"]

    def test_unknown_action(self, shell, popen, no_bus):
        with pytest.raises(ActionNotFound) as excinfo:
            launch_action(FakeEntry(exec="app", actions="new;"), "gone")
        assert excinfo.value.action == "gone"
        popen.assert_not_called()

    def test_unreachable_bus_falls_back_to_shell(self, shell, popen, no_bus):
        launch(activatable_entry())
        popen.assert_called_once()


class TestBusActivation:
    def test_activate_without_uris(self, bus, popen):
        assert launch(activatable_entry()) is None
        bus.activate_app.assert_called_once_with("org.example.App", {})
        popen.assert_not_called()

    def test_open_with_uris(self, bus, popen):
        launch(activatable_entry(), ["/tmp/x", "https://example.org"])
        bus.open_app.assert_called_once_with(
            "org.example.App", ["file:///tmp/x", "https://example.org"], {}
        )

    def test_action(self, bus, popen):
        entry = activatable_entry(
            actions="new-window", action_execs={"new-window": "activatable --new"}
        )
        launch_action(entry, "new-window")
        bus.activate_app_action.assert_called_once_with(
            "org.example.App", "new-window", {}
        )

    def test_no_gpu_env_or_terminal(self, bus, popen, monkeypatch):
        gpu_env = MagicMock()
        terminal = MagicMock()
        monkeypatch.setattr(launch_mod, "gpu_environment", gpu_env)
        monkeypatch.setattr(launch_mod, "detect_terminal", terminal)
        launch(activatable_entry(terminal=True), prefer_non_default_gpu=True)
        gpu_env.assert_not_called()
        terminal.assert_not_called()

    def test_activation_failure_propagates(self, bus, popen):
        # Given
        bus.activate_app.side_effect = RuntimeError("no reply")
        # When
        with pytest.raises(BusActivationError) as excinfo:
            launch(activatable_entry())
        # Then
        assert excinfo.value.app_id == "org.example.App"
        popen.assert_not_called()

    def test_platform_data(self, monkeypatch):
        monkeypatch.setenv("XDG_ACTIVATION_TOKEN", "token")
        monkeypatch.setenv("DESKTOP_STARTUP_ID", "startup")
        assert platform_data() == {
            "activation-token": "token",
            "desktop-startup-id": "startup",
        }


class TestPath2Url:
    def test_keeps_urls(self):
        assert path2url("https://example.org/a b") == "https://example.org/a b"

    def test_quotes_paths(self):
        assert path2url("/tmp/a b") == "file:///tmp/a%20b"


class TestPackageLayout:
    def test_dispatcher_module_is_not_shadowed(self):
        # Given / When
        from dexlaunch import launch as imported
        # Then
        assert imported is importlib.import_module("dexlaunch.launch")
        assert callable(imported.launch)


class TestShellJoin:
    def test_arguments_are_joined_unquoted(self, shell):
        # Given a file name with a space
        entry = FakeEntry(exec="app %f")
        # When
        resolved = resolve_command(entry, ["/tmp/a b"])
        # Then the shell sees two words
        assert resolved.args == ["app", "/tmp/a b"]
        assert resolved.argv == [shell, "-c", "app /tmp/a b"]
