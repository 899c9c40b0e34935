"Exceptions raised while resolving and launching desktop entries"


class ExecError(RuntimeError):
    "Base class for all launch failures"


class MissingExecKey(ExecError):
    def __init__(self, desktop_entry):
        self.desktop_entry = desktop_entry
        super().__init__(f'Entry "{desktop_entry}" does not have Exec')


class ActionNotFound(ExecError):
    def __init__(self, action, desktop_entry):
        self.action = action
        self.desktop_entry = desktop_entry
        super().__init__(f'Entry "{desktop_entry}" does not have action "{action}"')


class ActionExecKeyNotFound(ExecError):
    def __init__(self, action, desktop_entry):
        self.action = action
        self.desktop_entry = desktop_entry
        super().__init__(
            f'Entry "{desktop_entry}" action "{action}" does not have Exec'
        )


class DeprecatedFieldCode(ExecError):
    def __init__(self, token):
        self.token = token
        super().__init__(f'Deprecated field code "{token}" is not supported')


class UnknownFieldCode(ExecError):
    def __init__(self, token):
        self.token = token
        super().__init__(f'Unknown field code "{token}"')


class UnmatchedQuote(ExecError):
    def __init__(self, exec_string):
        self.exec_string = exec_string
        super().__init__(f"Unmatched quote in Exec string: {exec_string}")


class EmptyExecString(ExecError):
    def __init__(self):
        super().__init__("Exec string is empty after field code substitution")


class MissingShellEnvironment(ExecError):
    def __init__(self):
        super().__init__("SHELL environment variable is not set")


class NonZeroStatusCode(ExecError):
    def __init__(self, code, exec_string):
        self.code = code
        self.exec_string = exec_string
        super().__init__(f'"{exec_string}" exited with status {code}')


class ExecIOError(ExecError):
    "Wraps OSError from spawning, keeps errno and strerror of the original"

    def __init__(self, os_error: OSError, context: str = ""):
        self.os_error = os_error
        self.errno = os_error.errno
        self.strerror = os_error.strerror
        message = f"{context}: {os_error}" if context else str(os_error)
        super().__init__(message)


class BusActivationError(ExecError):
    def __init__(self, app_id, reason):
        self.app_id = app_id
        self.reason = reason
        super().__init__(f'D-Bus activation of "{app_id}" failed: {reason}')
