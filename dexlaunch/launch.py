"""
Desktop entry launch dispatcher.

Selects Exec template (entry or action), expands field codes, then either
activates the application via session bus or runs the command through
the login shell, optionally wrapped in a terminal emulator.
"""

import os
import shlex
import subprocess
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence
from urllib import parse as urlparse

from dexlaunch.entry import DesktopEntryLike, entry_id
from dexlaunch.errors import (
    ActionExecKeyNotFound,
    ActionNotFound,
    BusActivationError,
    ExecIOError,
    MissingExecKey,
    MissingShellEnvironment,
    NonZeroStatusCode,
)
from dexlaunch.fieldcodes import substitute, tokenize
from dexlaunch.gpu import gpu_environment
from dexlaunch.misc import Val, print_debug, sane_split
from dexlaunch.terminal import detect_terminal


class LaunchStrategy(Enum):
    "How resolved command is started"

    BUS = "bus"
    TERMINAL_SHELL = "terminal-shell"
    SHELL = "shell"


class ResolvedCommand:
    "Final command ready to be started"

    def __init__(
        self,
        strategy: LaunchStrategy,
        exec_string: str,
        args: List[str],
        argv: Optional[List[str]] = None,
        cwd=None,
        env: Optional[Dict[str, str]] = None,
        app_id: str = "",
        bus=None,
    ):
        self.strategy = strategy
        self.exec_string = exec_string
        # substituted Exec arguments
        self.args = args
        # shell invocation, empty for bus activation
        self.argv = argv or []
        self.cwd = cwd
        self.env = env or {}
        # set for bus activation only
        self.app_id = app_id
        self.bus = bus

    @property
    def executable(self) -> Optional[str]:
        return self.argv[0] if self.argv else None

    def __str__(self):
        if self.strategy is LaunchStrategy.BUS:
            return f"D-Bus activation of {self.app_id}: {shlex.join(self.args)}"
        lines = [shlex.join(self.argv)]
        if self.cwd:
            lines.append(f"  cwd: {self.cwd}")
        for var, value in self.env.items():
            lines.append(f"  env: {var}={value}")
        return "\n".join(lines)


def path2url(arg: str) -> str:
    "If argument is not an url, convert to file url"
    if urlparse.urlparse(arg).scheme:
        return arg
    return f"file://{urlparse.quote(os.path.abspath(arg))}"


def has_action(entry: DesktopEntryLike, action: str) -> bool:
    return action in sane_split(entry.actions() or "", ";")


def select_exec(entry: DesktopEntryLike, action: Optional[str] = None) -> str:
    "Returns Exec template of the entry or its action, raises if missing"
    if action is None:
        exec_string = entry.exec()
        if exec_string is None:
            raise MissingExecKey(entry.file_path)
        return exec_string

    if not has_action(entry, action):
        raise ActionNotFound(action, entry.file_path)
    exec_string = entry.action_exec(action)
    if exec_string is None:
        raise ActionExecKeyNotFound(action, entry.file_path)
    return exec_string


def session_bus():
    "Returns session bus interactions, or None if bus is not reachable"
    import dbus.exceptions
    from dexlaunch.dbus import DbusInteractions

    try:
        return DbusInteractions("session")
    except dbus.exceptions.DBusException as caught_exception:
        print_debug(f"session bus not reachable: {caught_exception}")
        return None


def app_id_of(entry) -> str:
    return getattr(entry, "app_id", None) or entry_id(entry.file_path)


def is_bus_actionable(entry, bus) -> bool:
    "Checks if entry declares DBusActivatable and its name is known to the bus"
    dbus_activatable = getattr(entry, "dbus_activatable", None)
    if dbus_activatable is None or not dbus_activatable():
        return False
    app_id = app_id_of(entry)
    if not Val.bus_name.search(app_id):
        print_debug(f'"{app_id}" is not a valid bus name')
        return False
    try:
        return bus.is_activatable(app_id)
    except Exception as caught_exception:
        print_debug(f"activatable check failed: {caught_exception}")
        return False


def choose_strategy(entry: DesktopEntryLike, bus) -> LaunchStrategy:
    if bus is not None and is_bus_actionable(entry, bus):
        return LaunchStrategy.BUS
    if entry.terminal():
        return LaunchStrategy.TERMINAL_SHELL
    return LaunchStrategy.SHELL


def resolve_command(
    entry: DesktopEntryLike,
    uris: Sequence[str] = (),
    action: Optional[str] = None,
    prefer_non_default_gpu: bool = False,
    connect_bus: Optional[Callable] = None,
) -> ResolvedCommand:
    """
    Resolves entry (or its action) and uris into a command without starting it.
    connect_bus is called after substitution and should return session bus
    interactions or None. No D-Bus activation is considered without it.
    Substituted arguments are joined with spaces unquoted into the shell
    command, so the shell re-splits arguments containing whitespace and
    interprets shell metacharacters in uris.
    """
    exec_string = select_exec(entry, action)
    print_debug(f"exec: {exec_string}")
    args = substitute(tokenize(exec_string), uris, entry)

    bus = connect_bus() if connect_bus is not None else None
    strategy = choose_strategy(entry, bus)
    print_debug(f"strategy: {strategy.value}")

    if strategy is LaunchStrategy.BUS:
        return ResolvedCommand(
            strategy, exec_string, args, app_id=app_id_of(entry), bus=bus
        )

    shell = os.getenv("SHELL")
    if not shell:
        raise MissingShellEnvironment()

    command = " ".join(args)
    if strategy is LaunchStrategy.TERMINAL_SHELL:
        terminal = detect_terminal()
        command = f"{terminal.executable} {terminal.separator} {command}"

    env = gpu_environment() if prefer_non_default_gpu else {}

    return ResolvedCommand(
        strategy,
        exec_string,
        args,
        argv=[shell, "-c", command],
        cwd=entry.path(),
        env=env,
    )


def platform_data() -> Dict[str, str]:
    "Activation data passed to org.freedesktop.Application methods"
    data = {}
    token = os.getenv("XDG_ACTIVATION_TOKEN")
    if token:
        data["activation-token"] = token
    startup_id = os.getenv("DESKTOP_STARTUP_ID")
    if startup_id:
        data["desktop-startup-id"] = startup_id
    return data


def activate(resolved: ResolvedCommand, uris: Sequence[str], action: Optional[str]):
    "Activates application via org.freedesktop.Application"
    bus = resolved.bus
    app_id = resolved.app_id
    data = platform_data()
    try:
        if action is not None:
            print_debug(f"ActivateAction {action} on {app_id}")
            bus.activate_app_action(app_id, action, data)
        elif uris:
            print_debug(f"Open {uris} on {app_id}")
            bus.open_app(app_id, [path2url(uri) for uri in uris], data)
        else:
            print_debug(f"Activate {app_id}")
            bus.activate_app(app_id, data)
    except Exception as caught_exception:
        raise BusActivationError(app_id, caught_exception) from caught_exception


def spawn(resolved: ResolvedCommand) -> subprocess.Popen:
    """
    Starts resolved shell command detached from us.
    Checks exit status once without waiting, raises NonZeroStatusCode if already failed.
    """
    env = None
    if resolved.env:
        env = os.environ.copy()
        env.update(resolved.env)

    print_debug("argv", resolved.argv, "cwd", resolved.cwd, "env", resolved.env)
    try:
        # pylint: disable=consider-using-with
        proc = subprocess.Popen(
            resolved.argv,
            cwd=resolved.cwd,
            env=env,
            start_new_session=True,
        )
    except OSError as caught_exception:
        raise ExecIOError(
            caught_exception, f'Failed to run "{resolved.exec_string}"'
        ) from caught_exception

    status = proc.poll()
    if status:
        raise NonZeroStatusCode(status, resolved.exec_string)
    return proc


def _launch(entry: DesktopEntryLike, uris, action, prefer_non_default_gpu):
    resolved = resolve_command(
        entry,
        uris,
        action=action,
        prefer_non_default_gpu=prefer_non_default_gpu,
        connect_bus=session_bus,
    )
    if resolved.strategy is LaunchStrategy.BUS:
        activate(resolved, uris, action)
        return None
    return spawn(resolved)


def launch(
    entry: DesktopEntryLike,
    uris: Sequence[str] = (),
    prefer_non_default_gpu: bool = False,
):
    """
    Launches desktop entry with given uris.
    Returns Popen of the started shell, or None if activated via D-Bus.
    """
    return _launch(entry, list(uris), None, prefer_non_default_gpu)


def launch_action(
    entry: DesktopEntryLike,
    action: str,
    uris: Sequence[str] = (),
    prefer_non_default_gpu: bool = False,
):
    """
    Launches desktop entry action with given uris.
    Returns Popen of the started shell, or None if activated via D-Bus.
    """
    return _launch(entry, list(uris), action, prefer_non_default_gpu)
