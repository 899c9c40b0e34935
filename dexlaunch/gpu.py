"""
GPU preference for switchable graphics.

GPU list comes from switcheroo-control on the system bus. Each GPU carries
environment variables that make a process render on it.
"""

from typing import Dict, List, Optional, Tuple

from dexlaunch.misc import print_debug, print_warning


class Gpu:
    "Single GPU as reported by switcheroo-control"

    def __init__(self, name: str, environment: List[str], default: bool = False):
        self.name = name
        # flat list alternating variable names and values
        self.environment = environment
        self.default = default

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r}, default={self.default})"

    def launch_options(self) -> List[Tuple[str, str]]:
        "Returns environment (name, value) pairs"
        env = [str(item) for item in self.environment]
        return list(zip(env[0::2], env[1::2]))


class GpuResolver:
    """
    Queries switcheroo-control once on creation.
    Unreachable bus or service results in no GPUs.
    """

    def __init__(self, bus=None):
        self.switchable = False
        self.gpus: List[Gpu] = []
        try:
            if bus is None:
                from dexlaunch.dbus import DbusInteractions

                bus = DbusInteractions("system")
            props = bus.get_switcheroo_properties(["HasDualGpu", "GPUs"])
        except Exception as caught_exception:
            print_warning(f"Could not query GPUs: {caught_exception}")
            return
        self.switchable = bool(props["HasDualGpu"])
        for gpu in props["GPUs"]:
            self.gpus.append(
                Gpu(
                    name=str(gpu.get("Name", "")),
                    environment=list(gpu.get("Environment", [])),
                    default=bool(gpu.get("Default", False)),
                )
            )
        print_debug("switchable", self.switchable, "gpus", self.gpus)

    def is_switchable(self) -> bool:
        return self.switchable

    def get_default(self) -> Optional[Gpu]:
        for gpu in self.gpus:
            if gpu.default:
                return gpu
        return None

    def non_default(self) -> Optional[Gpu]:
        for gpu in self.gpus:
            if not gpu.default:
                return gpu
        return None


def gpu_environment(resolver: Optional[GpuResolver] = None) -> Dict[str, str]:
    "Returns environment overrides for non-default GPU preference, empty if no GPU applies"
    if resolver is None:
        resolver = GpuResolver()
    gpu = resolver.non_default() if resolver.is_switchable() else resolver.get_default()
    if gpu is None:
        print_debug("no GPU to prefer")
        return {}
    print_debug(f"preferring GPU {gpu.name}")
    return dict(gpu.launch_options())
