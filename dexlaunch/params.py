"Static parameters"

BIN_NAME = "dexlaunch"

# terminal emulator discovery
TERMINAL_SYMLINK = "/usr/bin/x-terminal-emulator"
GNOME_TERMINAL = "/usr/bin/gnome-terminal"
KONSOLE = "/usr/bin/konsole"

# Exec field codes
# https://specifications.freedesktop.org/desktop-entry-spec/latest/exec-variables.html
DEPRECATED_FIELD_CODES = ("%d", "%D", "%n", "%N", "%v", "%m")

# ASCII whitespace separating Exec arguments
ASCII_WHITESPACE = " \t\n\x0c\r"

# desktop entry groups and keys
MAIN_GROUP = "Desktop Entry"
ACTION_GROUP = "Desktop Action {action}"

# org.freedesktop.Application
APPLICATION_IFACE = "org.freedesktop.Application"

# switcheroo-control on system bus
SWITCHEROO_NAME = "net.hadess.SwitcherooControl"
SWITCHEROO_PATH = "/net/hadess/SwitcherooControl"
