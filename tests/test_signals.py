"""
Tests for host signal collection.

Run with: python -m pytest tests/test_signals.py -v
"""

import logging

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from hybridopt.core.host import HostHandle
from hybridopt.core.signals import (
    DEFAULT_THROUGHPUT_RATE,
    HostSignals,
    MetricsSnapshot,
    StaticSignals,
    SystemSignals,
    capture_snapshot,
)


class TestSnapshot:
    """Tests for capture_snapshot."""

    def test_no_signals(self):
        snapshot = capture_snapshot(None)

        assert snapshot.throughput_rate == DEFAULT_THROUGHPUT_RATE
        assert snapshot.loaded_regions is None
        assert snapshot.load_average is None

    def test_static_signals(self):
        signals = StaticSignals(
            throughput_rate=15.5,
            loaded_regions=800,
            active_entities=1200,
            memory_pressure=0.45,
            active_sessions=12,
            load_average=1.5,
        )
        snapshot = capture_snapshot(signals)

        assert snapshot == MetricsSnapshot(15.5, 800, 1200, 0.45, 12, 1.5)

    def test_partial_signals(self):
        snapshot = capture_snapshot(StaticSignals(loaded_regions=300))

        assert snapshot.throughput_rate == DEFAULT_THROUGHPUT_RATE
        assert snapshot.loaded_regions == 300
        assert snapshot.active_entities is None

    def test_unimplemented_signals(self):
        """The bare interface provides nothing and never raises."""
        snapshot = capture_snapshot(HostSignals())
        assert snapshot == MetricsSnapshot()

    def test_snapshot_is_immutable(self):
        snapshot = MetricsSnapshot()
        with pytest.raises(AttributeError):
            snapshot.throughput_rate = 1.0

    def test_to_dict(self):
        d = MetricsSnapshot(throughput_rate=18.0).to_dict()
        assert d['throughput_rate'] == 18.0
        assert set(d) == {
            'throughput_rate', 'loaded_regions', 'active_entities',
            'memory_pressure', 'active_sessions', 'load_average',
        }


class TestSystemSignals:
    """Tests for psutil-backed signals."""

    def test_memory_pressure_in_unit_range(self):
        snapshot = capture_snapshot(SystemSignals())
        assert 0.0 <= snapshot.memory_pressure <= 1.0

    def test_application_providers(self):
        signals = SystemSignals(
            throughput_rate=lambda: 19.0,
            loaded_regions=lambda: 42,
            active_sessions=lambda: 3,
        )
        snapshot = capture_snapshot(signals)

        assert snapshot.throughput_rate == 19.0
        assert snapshot.loaded_regions == 42
        assert snapshot.active_sessions == 3
        assert snapshot.active_entities is None

    def test_failing_provider(self):
        def broken():
            raise ConnectionError('host gone')

        snapshot = capture_snapshot(SystemSignals(throughput_rate=broken))
        assert snapshot.throughput_rate == DEFAULT_THROUGHPUT_RATE


class TestHostHandle:
    """Tests for HostHandle."""

    def test_default_logger(self):
        host = HostHandle('plugin')
        assert host.logger.name == 'hybridopt.host.plugin'

    def test_custom_logger(self):
        logger = logging.getLogger('custom')
        assert HostHandle('plugin', logger).logger is logger
