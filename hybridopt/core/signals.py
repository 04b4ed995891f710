"""
Performance signals supplied by the host environment.

The evolutionary fitness model scores genomes against a handful of live
signals: throughput rate, loaded region count, active entity count, memory
pressure, concurrent session count and system load average. Acquiring them is
the host's job; this module defines the collaborator interface and reduces
the signals to an immutable snapshot, degrading any failing collaborator to a
documented default instead of raising.

Defaults on failure:
- current_throughput_rate: 20.0 (the target rate, i.e. no deficit)
- every other signal: None, which the fitness model maps to a fixed
  default impact
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Callable
import logging

import psutil

logger = logging.getLogger(__name__)

DEFAULT_THROUGHPUT_RATE = 20.0


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Point-in-time reading of the host signals.

    None means the signal was unavailable when the snapshot was taken.
    """
    throughput_rate: float = DEFAULT_THROUGHPUT_RATE
    loaded_regions: Optional[int] = None
    active_entities: Optional[int] = None
    memory_pressure: Optional[float] = None
    active_sessions: Optional[int] = None
    load_average: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class HostSignals:
    """
    Collaborator interface for host performance signals.

    Subclasses override the signals they can provide. Anything left
    unimplemented raises NotImplementedError and is treated as unavailable.
    """

    def current_throughput_rate(self) -> float:
        raise NotImplementedError

    def loaded_region_count(self) -> int:
        raise NotImplementedError

    def active_entity_count(self) -> int:
        raise NotImplementedError

    def memory_pressure_ratio(self) -> float:
        """Fraction of memory in use, in [0, 1]."""
        raise NotImplementedError

    def active_session_count(self) -> int:
        raise NotImplementedError

    def system_load_average(self) -> float:
        """One-minute load average. Negative means unavailable."""
        raise NotImplementedError


class StaticSignals(HostSignals):
    """
    Signals with fixed values.

    Any value left as None behaves like an unavailable collaborator.
    """

    def __init__(
        self,
        throughput_rate: Optional[float] = None,
        loaded_regions: Optional[int] = None,
        active_entities: Optional[int] = None,
        memory_pressure: Optional[float] = None,
        active_sessions: Optional[int] = None,
        load_average: Optional[float] = None,
    ):
        self.throughput_rate = throughput_rate
        self.loaded_regions = loaded_regions
        self.active_entities = active_entities
        self.memory_pressure = memory_pressure
        self.active_sessions = active_sessions
        self.load_average = load_average

    @staticmethod
    def _require(value, name: str):
        if value is None:
            raise LookupError(f"Signal '{name}' is not available")
        return value

    def current_throughput_rate(self) -> float:
        return self._require(self.throughput_rate, 'throughput_rate')

    def loaded_region_count(self) -> int:
        return self._require(self.loaded_regions, 'loaded_regions')

    def active_entity_count(self) -> int:
        return self._require(self.active_entities, 'active_entities')

    def memory_pressure_ratio(self) -> float:
        return self._require(self.memory_pressure, 'memory_pressure')

    def active_session_count(self) -> int:
        return self._require(self.active_sessions, 'active_sessions')

    def system_load_average(self) -> float:
        return self._require(self.load_average, 'load_average')


class SystemSignals(HostSignals):
    """
    Signals read from the operating system via psutil.

    Only memory pressure and load average come from the machine itself.
    Throughput, region, entity and session counts are application level and
    can be supplied as callables; those left out are unavailable.
    """

    def __init__(
        self,
        throughput_rate: Optional[Callable[[], float]] = None,
        loaded_regions: Optional[Callable[[], int]] = None,
        active_entities: Optional[Callable[[], int]] = None,
        active_sessions: Optional[Callable[[], int]] = None,
    ):
        self._throughput_rate = throughput_rate
        self._loaded_regions = loaded_regions
        self._active_entities = active_entities
        self._active_sessions = active_sessions

    @staticmethod
    def _call(func: Optional[Callable], name: str):
        if func is None:
            raise NotImplementedError(f"No provider for signal '{name}'")
        return func()

    def current_throughput_rate(self) -> float:
        return float(self._call(self._throughput_rate, 'throughput_rate'))

    def loaded_region_count(self) -> int:
        return int(self._call(self._loaded_regions, 'loaded_regions'))

    def active_entity_count(self) -> int:
        return int(self._call(self._active_entities, 'active_entities'))

    def active_session_count(self) -> int:
        return int(self._call(self._active_sessions, 'active_sessions'))

    def memory_pressure_ratio(self) -> float:
        return psutil.virtual_memory().percent / 100.0

    def system_load_average(self) -> float:
        return float(psutil.getloadavg()[0])


def _read(getter: Callable[[], Any], name: str, default=None):
    """Call a signal getter, returning default if it fails for any reason."""
    try:
        return getter()
    except Exception as e:
        logger.debug("Signal %s unavailable: %s", name, e)
        return default


def capture_snapshot(signals: Optional[HostSignals]) -> MetricsSnapshot:
    """
    Read every host signal once.

    Args:
        signals: Host collaborator, or None if the host provides nothing

    Returns:
        MetricsSnapshot with unavailable signals set to their defaults
    """
    if signals is None:
        return MetricsSnapshot()

    return MetricsSnapshot(
        throughput_rate=_read(
            signals.current_throughput_rate, 'throughput_rate', DEFAULT_THROUGHPUT_RATE
        ),
        loaded_regions=_read(signals.loaded_region_count, 'loaded_regions'),
        active_entities=_read(signals.active_entity_count, 'active_entities'),
        memory_pressure=_read(signals.memory_pressure_ratio, 'memory_pressure'),
        active_sessions=_read(signals.active_session_count, 'active_sessions'),
        load_average=_read(signals.system_load_average, 'load_average'),
    )
