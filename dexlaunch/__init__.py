"Launch XDG Desktop Entries: Exec field codes, terminal wrapping, D-Bus activation"
