import os
from typing import NamedTuple

from dexlaunch.misc import print_debug
from dexlaunch.params import GNOME_TERMINAL, KONSOLE, TERMINAL_SYMLINK


class Terminal(NamedTuple):
    "Terminal emulator executable and the argument that precedes the command"

    executable: str
    separator: str


def _read_link(path: str) -> str:
    "Returns symlink target, relative targets resolved against link location"
    target = os.readlink(path)
    return os.path.join(os.path.dirname(path), target)


def detect_terminal() -> Terminal:
    """
    Returns terminal linked to x-terminal-emulator, or gnome-terminal if present,
    or konsole. Never fails, konsole is returned even if missing.
    """
    try:
        found = _read_link(TERMINAL_SYMLINK)
    except OSError:
        found = None

    if found is not None:
        # alternatives system adds one more hop
        try:
            real = _read_link(found)
        except OSError:
            real = found
        separator = "--" if "gnome-terminal" in found or "gnome-terminal" in real else "-e"
        print_debug(f"{TERMINAL_SYMLINK} -> {found} -> {real}, separator {separator}")
        return Terminal(real, separator)

    if os.path.exists(GNOME_TERMINAL):
        return Terminal(GNOME_TERMINAL, "--")
    return Terminal(KONSOLE, "-e")
