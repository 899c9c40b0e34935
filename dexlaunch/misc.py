import os
import sys
import re
import syslog
import textwrap
from io import StringIO
from typing import List


def str2bool_plus(string: str, numeric: bool = False):
    "Takes boolean'ish or numeric string, converts to bool or int"
    if string.isnumeric():
        number = int(string)
        if numeric:
            return number
        return number > 0
    elif not string or string.lower().capitalize() in (
        "No",
        "False",
        "N",
    ):
        if numeric:
            return 0
        return False
    elif string.lower().capitalize() in ("Yes", "True", "Y"):
        if numeric:
            return 1
        return True
    else:
        raise ValueError(f'Expected boolean or numeric or empty value, got "{string}"')


class DebugFlag:
    "Checks for DEBUG env value and holds 'debug' boolean, 'warning' string"

    debug_raw = os.getenv("DEBUG", "0")
    warning = None
    try:
        debug = str2bool_plus(debug_raw)
    except ValueError:
        warning = f'Expected boolean or numeric or empty value for DEBUG, got "{debug_raw}", assuming False'
        debug = False
    del debug_raw


class LogFlag:
    "Holds global state of syslog logging"

    # log using syslog module
    log = False


class Styles:
    "Terminal control characters for color and style"

    reset = "\033[0m"
    red = "\033[31m"
    green = "\033[32m"
    yellow = "\033[33m"
    grey = "\033[90m"


class Val:
    "Compiled re patterns for validation"

    action_id = re.compile(r"\A[a-zA-Z0-9-]+\Z", re.MULTILINE)
    # D-Bus well-known name as used for DBusActivatable entries
    bus_name = re.compile(
        r"\A[a-zA-Z_-][a-zA-Z0-9_-]*(\.[a-zA-Z_-][a-zA-Z0-9_-]*)+\Z", re.MULTILINE
    )


def dedent(data: str) -> str:
    "Applies dedent, lstrips newlines, rstrips except single newline"
    data = textwrap.dedent(data).lstrip("\n")
    return data.rstrip() + "\n" if data.endswith("\n") else data.rstrip()


def sane_split(string: str, delimiter: str) -> List[str]:
    "Splits string by delimiter, but returns empty list on empty string"
    if not isinstance(string, str):
        raise TypeError(f'"string" should be a string, got: {type(string)}')
    if not isinstance(delimiter, str):
        raise TypeError(f'"delimiter" should be a string, got: {type(delimiter)}')
    if not delimiter:
        raise ValueError('"delimiter" should not be empty')
    return string.split(delimiter) if string else []


def _syslog(loglevel: int, *what, **how):
    "Renders print arguments to a string and sends it to syslog"
    print_string = StringIO()
    print(*what, **how, file=print_string, flush=True)
    sl_level = [
        syslog.LOG_EMERG,
        syslog.LOG_ALERT,
        syslog.LOG_CRIT,
        syslog.LOG_ERR,
        syslog.LOG_WARNING,
        syslog.LOG_NOTICE,
        syslog.LOG_INFO,
        syslog.LOG_DEBUG,
    ][loglevel]
    syslog.syslog(sl_level | syslog.LOG_USER, print_string.getvalue().strip())


# all print_* functions force flush for synchronized output
def print_normal(*what, **how):
    """
    Normal print with flush.
    optional 'log': False
    """
    log = how.pop("log", LogFlag.log)

    print(*what, **how, flush=True)

    if log:
        _syslog(6, *what, **how)


def print_fancy(*what, **how):
    """
    Prints to 'file' (sys.stdout) with flush.
    In 'color' (Styles.green) if 'file' is a tty.
    'notify': 0: no, 1: if 'file' is not a tty, 2: always
    'notify_urgency': 0
    'log': False (also log to syslog)
    'loglevel': 0-7 (EMERG-DEBUG), default 5 (NOTICE)
    """
    file = how.pop("file", sys.stdout)
    color = how.pop("color", Styles.green)
    notify = how.pop("notify", 0)
    notify_urgency = how.pop("notify_urgency", 0)
    notify_summary = how.pop("notify_summary", "Message")
    notify_icon = how.pop("notify_icon", "applications-system")
    log = how.pop("log", LogFlag.log)
    loglevel = how.pop("loglevel", 5)

    # print colored text for interactive output
    if file.isatty():
        print(color, end="", file=file, flush=True)
        print(*what, **how, file=file, flush=True)
        print(Styles.reset, end="", file=file, flush=True)
    else:
        print(*what, **how, file=file, flush=True)

    if log:
        _syslog(loglevel, *what, **how)

    if notify and (not file.isatty() or notify == 2):
        try:
            from dexlaunch.dbus import DbusInteractions

            bus_session = DbusInteractions("session")
            msg = " ".join(str(item) for item in what)
            bus_session.notify(
                summary=notify_summary,
                app_icon=notify_icon,
                body=msg,
                urgency=notify_urgency,
            )
        except Exception as caught_exception:
            print_warning(caught_exception, notify=0)


def print_ok(*what, **how):
    "Prints in green, NOTICE loglevel"
    how.setdefault("color", Styles.green)
    how.setdefault("loglevel", 5)
    print_fancy(*what, **how)


def print_warning(*what, **how):
    """
    Prints to 'file' (sys.stdout) with flush.
    In 'color' (Styles.yellow) if 'file' is a tty.
    'notify_urgency': 1, 'loglevel': 4 (WARNING)
    """
    how.setdefault("color", Styles.yellow)
    how.setdefault("notify_urgency", 1)
    how.setdefault("notify_summary", "Warning")
    how.setdefault("notify_icon", "dialog-warning")
    how.setdefault("loglevel", 4)
    print_fancy(*what, **how)


def print_error(*what, **how):
    """
    Prints to 'file' (sys.stderr) with flush.
    In 'color' (Styles.red) if 'file' is a tty.
    'notify_urgency': 2, 'loglevel': 3 (ERR)
    """
    how.setdefault("file", sys.stderr)
    how.setdefault("color", Styles.red)
    how.setdefault("notify_urgency", 2)
    how.setdefault("notify_summary", "Error")
    how.setdefault("notify_icon", "dialog-error")
    how.setdefault("loglevel", 3)
    print_fancy(*what, **how)


if DebugFlag.debug:
    from inspect import stack

    def print_debug(*what, **how):
        "Prints to stderr with DEBUG and END_DEBUG marks"
        dsep = "\n" if "sep" not in how or "\n" not in how["sep"] else ""
        file = how.pop("file", sys.stderr)
        color = how.pop("color", Styles.grey)
        log = how.pop("log", LogFlag.log)

        my_stack = stack()
        print_fancy(
            f"DEBUG {my_stack[1].filename}:{my_stack[1].lineno} {my_stack[1].function}{dsep}",
            *what,
            f"{dsep}END_DEBUG",
            **how,
            file=file,
            color=color,
            notify=0,
            log=log,
            loglevel=7,
        )

else:

    def print_debug(*what, **how):
        "Does nothing"
        pass
