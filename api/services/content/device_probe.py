# api/services/content/device_probe.py
"""
Device state probes used to gate background prefetch.

A probe answers two questions once: is the active network unmetered, and
is the device on external power. probe_device_state() runs the probe a
single time on a worker thread and gives up after a timeout; there is no
retry. A probe that times out or fails counts as "not eligible".
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceState:
    unmetered_network: bool = False
    charging: bool = False

    @property
    def prefetch_allowed(self) -> bool:
        return self.unmetered_network or self.charging


class DeviceProbe:
    """Interface for network-type and power-state signals."""

    def is_unmetered_network(self) -> bool:
        raise NotImplementedError

    def is_charging(self) -> bool:
        raise NotImplementedError


class StaticDeviceProbe(DeviceProbe):
    """Fixed answers; for hosts that know their own state, and for tests."""

    def __init__(self, unmetered_network: bool = False, charging: bool = False):
        self.unmetered_network = unmetered_network
        self.charging = charging

    def is_unmetered_network(self) -> bool:
        return self.unmetered_network

    def is_charging(self) -> bool:
        return self.charging


def _read(path: Path) -> str:
    try:
        return path.read_text().strip()
    except OSError:
        return ""


class SysfsDeviceProbe(DeviceProbe):
    """
    Reads Linux sysfs for power supply and network interface state.

    Wi-Fi and wired Ethernet count as unmetered; cellular modem interfaces
    (wwan*, rmnet*) do not. A host without a battery is treated as powered.
    """

    METERED_PREFIXES = ("ww", "rmnet", "ppp")

    def __init__(self, sys_root: str = "/sys"):
        self.sys_root = Path(sys_root)

    def is_unmetered_network(self) -> bool:
        net_dir = self.sys_root / "class" / "net"
        if not net_dir.is_dir():
            return False
        for iface in net_dir.iterdir():
            name = iface.name
            if name == "lo" or name.startswith(self.METERED_PREFIXES):
                continue
            if _read(iface / "operstate") != "up":
                continue
            # ARPHRD_ETHER covers both wired and wireless NICs
            if (iface / "wireless").exists() or _read(iface / "type") == "1":
                return True
        return False

    def is_charging(self) -> bool:
        supply_dir = self.sys_root / "class" / "power_supply"
        if not supply_dir.is_dir():
            return True
        has_battery = False
        for supply in supply_dir.iterdir():
            kind = _read(supply / "type")
            if kind == "Mains" and _read(supply / "online") == "1":
                return True
            if kind == "Battery":
                has_battery = True
                if _read(supply / "status") in ("Charging", "Full"):
                    return True
        return not has_battery


def probe_device_state(probe: DeviceProbe, timeout: float) -> DeviceState:
    """Run the probe once, bounded by `timeout` seconds."""

    def _probe() -> DeviceState:
        return DeviceState(
            unmetered_network=probe.is_unmetered_network(),
            charging=probe.is_charging(),
        )

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="seek-device-probe")
    future = executor.submit(_probe)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        logger.warning(f"Device probe timed out after {timeout}s")
        return DeviceState()
    except Exception as e:
        logger.warning(f"Device probe failed: {e}")
        return DeviceState()
    finally:
        executor.shutdown(wait=False)
