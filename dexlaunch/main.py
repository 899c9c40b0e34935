"""
# dexlaunch

Launches applications described by XDG Desktop Entries.
Expands Exec field codes, runs the command via login shell (optionally in
a terminal emulator), or activates the application via D-Bus when it is
DBusActivatable.
"""

import os
import sys
import argparse

from dexlaunch.params import BIN_NAME
from dexlaunch.misc import (
    DebugFlag,
    LogFlag,
    Val,
    dedent,
    print_debug,
    print_error,
    print_normal,
    print_ok,
    print_warning,
)
from dexlaunch.entry import XdgDesktopEntry
from dexlaunch.launch import launch, launch_action, resolve_command, session_bus


class HelpFormatterNewlines(argparse.HelpFormatter):
    "Treats double newlines as line breaks, preserves indents after them"

    def _fill_text(self, text, width, indent):
        "For parser descriptions and epilogs"
        lines = []
        for line in text.split("\n\n"):
            p_indent = line[0 : len(line) - len(line.lstrip())]
            lines.append(
                argparse.HelpFormatter._fill_text(self, line, width, indent + p_indent)
            )
        return "\n".join(lines)

    def _split_lines(self, text, width):
        "For argument descriptions"
        lines = []
        for line in text.split("\n\n"):
            p_indent = line[0 : len(line) - len(line.lstrip())]
            p_indent_width = len(p_indent)
            lines.extend(
                p_indent + l
                for l in argparse.HelpFormatter._split_lines(
                    self, line, width - p_indent_width
                )
            )
        return lines


class EntryArg:
    """
    Evaluates entry argument string: path to Desktop Entry file with optional
    ":"-delimited action ID.
    Fills attributes: path, entry_action
    """

    def __init__(self, arg: str):
        "Takes argument string"
        self.path, self.entry_action = arg, None

        if ".desktop:" in arg:
            self.path, entry_action = arg.rsplit(":", maxsplit=1)
            if entry_action:
                if not Val.action_id.search(entry_action):
                    raise ValueError(f'Invalid Desktop Entry Action "{entry_action}"')
                self.entry_action = entry_action

        self.path = os.path.normpath(os.path.expanduser(self.path))

    def __str__(self):
        "String representation for debug purposes"
        return f"{self.__class__.__name__}(path={self.path}, entry_action={self.entry_action})"


class Args:
    "Parses args, stores result in 'parsed'"

    def __init__(self, custom_args=None):
        "Parses sys.argv[1:] or custom_args"

        print_debug(
            f"parsing {'argv' if custom_args is None else 'custom args'}",
            sys.argv[1:] if custom_args is None else custom_args,
        )

        self.parser = argparse.ArgumentParser(
            prog=BIN_NAME,
            formatter_class=HelpFormatterNewlines,
            description=dedent(
                """
                Launches application from Desktop Entry file.\n
                \n
                Field codes in Exec key are expanded with given files or URLs.
                Entries with DBusActivatable=true are activated via session bus
                when possible.
                """
            ),
            epilog=dedent(
                """
                Environment:\n
                  SHELL - shell used to run the command (required)\n
                  LANG - locale for %c field code\n
                  DEBUG - enable debug output\n
                """
            ),
        )
        self.parser.add_argument(
            "entry",
            metavar="entry",
            help='Path to Desktop Entry file, optionally with ":"-delimited action ID.',
        )
        self.parser.add_argument(
            "uris",
            metavar="uri",
            nargs="*",
            help="Files or URLs to pass to the application.",
        )
        self.parser.add_argument(
            "-a",
            "--action",
            dest="action",
            metavar="ID",
            default=None,
            help="Launch Desktop Action with given ID.",
        )
        gpu_group = self.parser.add_mutually_exclusive_group()
        gpu_group.add_argument(
            "-g",
            "--gpu",
            dest="gpu",
            action="store_true",
            default=None,
            help="Prefer non-default GPU (default: PrefersNonDefaultGPU key of the entry).",
        )
        gpu_group.add_argument(
            "-G",
            "--no-gpu",
            dest="gpu",
            action="store_false",
            help="Do not prefer non-default GPU.",
        )
        self.parser.add_argument(
            "-n",
            "--dry-run",
            dest="dry_run",
            action="store_true",
            help="Print resolved command instead of launching.",
        )
        self.parser.add_argument(
            "-l",
            "--log",
            dest="log",
            action="store_true",
            help="Also send messages to syslog.",
        )

        self.parsed = self.parser.parse_args(custom_args)

    def __str__(self):
        return str(self.parsed)


def run(parsed) -> int:
    "Launches entry according to parsed args, returns exit code"
    entry_arg = EntryArg(parsed.entry)
    print_debug("entry_arg", entry_arg)

    action = parsed.action or entry_arg.entry_action
    if parsed.action and entry_arg.entry_action and parsed.action != entry_arg.entry_action:
        raise ValueError(
            f'Conflicting actions "{entry_arg.entry_action}" and "{parsed.action}"'
        )

    entry = XdgDesktopEntry(entry_arg.path)

    prefer_gpu = parsed.gpu
    if prefer_gpu is None:
        prefer_gpu = entry.prefers_non_default_gpu()

    if parsed.dry_run:
        resolved = resolve_command(
            entry,
            parsed.uris,
            action=action,
            prefer_non_default_gpu=prefer_gpu,
            connect_bus=session_bus,
        )
        print_normal(resolved)
        return 0

    if action:
        launch_action(entry, action, parsed.uris, prefer_non_default_gpu=prefer_gpu)
    else:
        launch(entry, parsed.uris, prefer_non_default_gpu=prefer_gpu)
    print_ok(f"Launched {entry.app_id}{':' + action if action else ''}")
    return 0


def main(custom_args=None):
    "dexlaunch main entrypoint"

    if DebugFlag.warning:
        print_warning(DebugFlag.warning)

    args = Args(custom_args)
    print_debug("Args.parsed", args)

    if args.parsed.log:
        LogFlag.log = True

    try:
        sys.exit(run(args.parsed))
    except Exception as caught_exception:
        print_error(caught_exception, notify=1)
        sys.exit(1)


if __name__ == "__main__":
    main()
