import os
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from xdg.DesktopEntry import DesktopEntry

from dexlaunch.misc import print_debug
from dexlaunch.params import ACTION_GROUP, MAIN_GROUP


@runtime_checkable
class DesktopEntryLike(Protocol):
    "Accessors the launcher needs from a parsed desktop entry"

    file_path: Path

    def exec(self) -> Optional[str]: ...

    def action_exec(self, action: str) -> Optional[str]: ...

    def actions(self) -> Optional[str]: ...

    def icon(self) -> Optional[str]: ...

    def name(self, locale: Optional[str]) -> Optional[str]: ...

    def path(self) -> Optional[Path]: ...

    def terminal(self) -> bool: ...


def locale_variants(locale: str) -> List[str]:
    "Returns locale match order: lang_COUNTRY@MODIFIER, lang_COUNTRY, lang@MODIFIER, lang"
    rest, _, modifier = locale.partition("@")
    lang, _, country = rest.partition("_")
    variants = []
    if country and modifier:
        variants.append(f"{lang}_{country}@{modifier}")
    if country:
        variants.append(f"{lang}_{country}")
    if modifier:
        variants.append(f"{lang}@{modifier}")
    variants.append(lang)
    return variants


def entry_id(file_path) -> str:
    "Returns entry file basename without .desktop extension"
    basename = os.path.basename(file_path)
    if basename.endswith(".desktop"):
        return basename[: -len(".desktop")]
    return basename


class XdgDesktopEntry:
    "Desktop entry accessors over pyxdg DesktopEntry, missing values are None"

    def __init__(self, file_path):
        self.file_path = Path(file_path)
        # pyxdg silently creates a new entry for missing files
        if not self.file_path.is_file():
            raise FileNotFoundError(f'Path "{self.file_path}" does not exist!')
        if not os.access(self.file_path, os.R_OK):
            raise PermissionError(f'Path "{self.file_path}" is not readable!')
        try:
            self._entry = DesktopEntry(str(self.file_path))
        except Exception as caught_exception:
            raise RuntimeError(
                f'Failed to parse entry "{self.file_path}"'
            ) from caught_exception
        print_debug(f"parsed entry {self.file_path}")

    def __str__(self):
        return str(self.file_path)

    @property
    def app_id(self) -> str:
        return entry_id(self.file_path)

    def _get(self, key: str, group: str = MAIN_GROUP) -> Optional[str]:
        "Returns raw key value or None if group or key is missing"
        if group not in self._entry.content or key not in self._entry.content[group]:
            return None
        return self._entry.get(key, group=group)

    def _get_bool(self, key: str) -> bool:
        return self._get(key) is not None and bool(
            self._entry.get(key, type="boolean")
        )

    def exec(self) -> Optional[str]:
        return self._get("Exec") or None

    def action_exec(self, action: str) -> Optional[str]:
        return self._get("Exec", group=ACTION_GROUP.format(action=action)) or None

    def actions(self) -> Optional[str]:
        return self._get("Actions")

    def icon(self) -> Optional[str]:
        return self._get("Icon") or None

    def name(self, locale: Optional[str]) -> Optional[str]:
        "Returns Name localized for locale, falls back to plain Name"
        if locale:
            for variant in locale_variants(locale):
                value = self._get(f"Name[{variant}]")
                if value:
                    return value
        return self._get("Name") or None

    def path(self) -> Optional[Path]:
        value = self._get("Path")
        return Path(value) if value else None

    def terminal(self) -> bool:
        return self._get_bool("Terminal")

    def dbus_activatable(self) -> bool:
        return self._get_bool("DBusActivatable")

    def prefers_non_default_gpu(self) -> bool:
        return self._get_bool("PrefersNonDefaultGPU")
