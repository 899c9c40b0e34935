from pathlib import Path

import pytest

ENTRIES = Path(__file__).parent / "entries"


class FakeEntry:
    "In-memory desktop entry with the accessors launcher needs"

    def __init__(
        self,
        exec=None,
        actions=None,
        action_execs=None,
        icon=None,
        names=None,
        path=None,
        terminal=False,
        file_path="/usr/share/applications/app.desktop",
        dbus_activatable=False,
        app_id=None,
    ):
        self._exec = exec
        self._actions = actions
        self._action_execs = action_execs or {}
        self._icon = icon
        self._names = names or {}
        self._path = Path(path) if path else None
        self._terminal = terminal
        self._dbus_activatable = dbus_activatable
        self.file_path = Path(file_path)
        if app_id:
            self.app_id = app_id

    def exec(self):
        return self._exec

    def action_exec(self, action):
        return self._action_execs.get(action)

    def actions(self):
        return self._actions

    def icon(self):
        return self._icon

    def name(self, locale):
        return self._names.get(locale)

    def path(self):
        return self._path

    def terminal(self):
        return self._terminal

    def dbus_activatable(self):
        return self._dbus_activatable


@pytest.fixture
def entries_dir():
    return ENTRIES


@pytest.fixture
def shell(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/bash")
    return "/bin/bash"
