import dbus
from dexlaunch.misc import print_debug
from dexlaunch.params import APPLICATION_IFACE, SWITCHEROO_NAME, SWITCHEROO_PATH


def app_object_path(app_id: str) -> str:
    "Converts application ID (well-known bus name) to its object path"
    return "/" + app_id.replace(".", "/").replace("-", "_")


class DbusInteractions:
    "Handles dexlaunch interactions via DBus"

    # mapping of logical service keys to (bus_name, object_path)
    _SERVICES = {
        "dbus": ("org.freedesktop.DBus", "/org/freedesktop/DBus"),
        "notifications": (
            "org.freedesktop.Notifications",
            "/org/freedesktop/Notifications",
        ),
        "switcheroo": (SWITCHEROO_NAME, SWITCHEROO_PATH),
    }

    # mapping of service key -> { iface_key: iface_name, ... }
    _INTERFACES = {
        "dbus": {
            "dbus": "org.freedesktop.DBus",
        },
        "notifications": {
            "notify": "org.freedesktop.Notifications",
        },
        "switcheroo": {
            "properties": "org.freedesktop.DBus.Properties",
        },
    }

    def __init__(self, dbus_level: str):
        "Takes dbus_level as 'system' or 'session', raises DBusException if bus is not reachable"
        if dbus_level in ["system", "session"]:
            print_debug("initiate dbus interaction", dbus_level)
            self.dbus_level = dbus_level
            self._bus = None
            self._proxies = {}
            self._interfaces = {}
            # connect right away so unreachable bus fails here
            self._get_bus()
        else:
            raise ValueError(
                f"dbus_level can be 'system' or 'session', got '{dbus_level}'"
            )

    def __str__(self):
        "Prints currently held proxies for debug purposes"
        return f"DbusInteractions, instance level: {self.dbus_level}, proxies: {list(self._proxies)}"

    def _get_bus(self):
        """Lazily return and cache the system or session bus."""
        if self._bus is None:
            self._bus = (
                dbus.SystemBus() if self.dbus_level == "system" else dbus.SessionBus()
            )
        return self._bus

    def _get_proxy(self, service_key: str):
        """Retrieve and cache a DBus object proxy for the given service."""
        if service_key not in self._proxies:
            bus_name, path = self._SERVICES[service_key]
            self._proxies[service_key] = self._get_bus().get_object(bus_name, path)
        return self._proxies[service_key]

    def _get_interface(self, service_key: str, iface_key: str):
        """Retrieve and cache a DBus Interface for the given service and interface."""
        cache_key = f"{service_key}_{iface_key}"
        if cache_key not in self._interfaces:
            proxy = self._get_proxy(service_key)
            iface_name = self._INTERFACES[service_key][iface_key]
            self._interfaces[cache_key] = dbus.Interface(proxy, iface_name)
        return self._interfaces[cache_key]

    def _get_app_iface(self, app_id: str):
        """Retrieve and cache org.freedesktop.Application interface for the given app ID."""
        cache_key = f"app_{app_id}"
        if cache_key not in self._interfaces:
            app_obj = self._get_bus().get_object(app_id, app_object_path(app_id))
            self._interfaces[cache_key] = dbus.Interface(app_obj, APPLICATION_IFACE)
        return self._interfaces[cache_key]

    # External functions (doing stuff via objects)

    def is_activatable(self, app_id: str) -> bool:
        "Checks if app_id can be activated or is already running on the bus"
        iface = self._get_interface("dbus", "dbus")
        if app_id in [str(name) for name in iface.ListActivatableNames()]:
            return True
        return bool(iface.NameHasOwner(app_id))

    def activate_app(self, app_id: str, platform_data: dict):
        "Calls Activate on application"
        self._get_app_iface(app_id).Activate(
            dbus.Dictionary(platform_data, signature="sv")
        )

    def open_app(self, app_id: str, uris: list, platform_data: dict):
        "Calls Open with list of URIs on application"
        self._get_app_iface(app_id).Open(
            dbus.Array(uris, signature="s"),
            dbus.Dictionary(platform_data, signature="sv"),
        )

    def activate_app_action(self, app_id: str, action: str, platform_data: dict):
        "Calls ActivateAction without parameters on application"
        self._get_app_iface(app_id).ActivateAction(
            action,
            dbus.Array([], signature="v"),
            dbus.Dictionary(platform_data, signature="sv"),
        )

    def get_switcheroo_properties(self, keys):
        "Takes list of keys, returns dict of requested properties of switcheroo-control"
        iface = self._get_interface("switcheroo", "properties")
        props = {}
        for key in keys:
            props[key] = iface.Get(SWITCHEROO_NAME, key)
        return props

    def notify(
        self,
        summary: str,
        body: str,
        app_name: str = "dexlaunch",
        replaces_id: int = 0,
        app_icon: str = "system-run",
        actions: list | None = None,
        hints: dict | None = None,
        expire_timeout: int = -1,
        # custom helpers
        urgency: int = 1,
    ):
        "Sends notification via Dbus"
        iface = self._get_interface("notifications", "notify")
        if actions is None:
            actions = []
        if hints is None:
            hints = {}
        if not 0 <= urgency <= 2:
            raise ValueError(f"Urgency range is 0-2, got {urgency}")
        # plain integer does not work
        hints["urgency"] = dbus.Byte(urgency)
        iface.Notify(
            app_name,
            replaces_id,
            app_icon,
            summary,
            body,
            actions,
            hints,
            expire_timeout,
        )
