"""Per-phase tick timing for PlantSim runs.

The loop times four phases of every tick:
  - environment: soil drying, rain, nutrient regeneration
  - canopy: rebuilding the per-cell leaf-height map
  - plants: running the four strategies on every plant
  - housekeeping: removing the dead, decomposition, seed admission

A disabled monitor does no timing work at all.

Usage:
    perf = PerfMonitor(enabled=True)
    loop = SimulationLoop(catalog, config, perf=perf)
    loop.run(500)
    print(perf.report())
"""

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator

PHASE_ENVIRONMENT = "environment"
PHASE_CANOPY = "canopy"
PHASE_PLANTS = "plants"
PHASE_HOUSEKEEPING = "housekeeping"


@dataclass
class PhaseStats:
    """Wall-clock totals for one phase."""
    total_time: float = 0.0
    call_count: int = 0
    max_time: float = 0.0

    @property
    def mean_time(self) -> float:
        return self.total_time / self.call_count if self.call_count > 0 else 0.0

    def add(self, elapsed: float) -> None:
        self.total_time += elapsed
        self.call_count += 1
        self.max_time = max(self.max_time, elapsed)


class PerfMonitor:
    """Accumulates wall-clock time per named tick phase."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self._stats: Dict[str, PhaseStats] = defaultdict(PhaseStats)

    @contextmanager
    def track(self, phase: str) -> Iterator[None]:
        """Time the enclosed block under `phase` (no-op when disabled)."""
        if not self.enabled:
            yield
            return
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._stats[phase].add(time.perf_counter() - t0)

    def get_stats(self) -> Dict[str, PhaseStats]:
        return dict(self._stats)

    @property
    def total_time(self) -> float:
        return sum(s.total_time for s in self._stats.values())

    def summary(self) -> dict:
        """Per-phase totals, slowest first, plus the grand total."""
        total = self.total_time
        result = {}
        for name, stats in sorted(self._stats.items(), key=lambda x: -x[1].total_time):
            result[name] = {
                'total_s': round(stats.total_time, 4),
                'calls': stats.call_count,
                'mean_ms': round(stats.mean_time * 1000, 3),
                'max_ms': round(stats.max_time * 1000, 3),
                'pct': round(stats.total_time / total * 100, 1) if total > 0 else 0.0,
            }
        result['_total_s'] = round(total, 4)
        return result

    def report(self, title: str = "Tick phase timing") -> str:
        """Fixed-width text table of summary()."""
        rule = f"{'-'*16} {'-'*10} {'-'*8} {'-'*10} {'-'*10} {'-'*6}"
        lines = [
            title,
            f"{'Phase':<16} {'Total (s)':>10} {'Calls':>8} "
            f"{'Mean (ms)':>10} {'Max (ms)':>10} {'%':>6}",
            rule,
        ]
        summary = self.summary()
        total = summary.pop('_total_s')
        for name, row in summary.items():
            lines.append(
                f"{name:<16} {row['total_s']:>10.4f} {row['calls']:>8} "
                f"{row['mean_ms']:>10.3f} {row['max_ms']:>10.3f} {row['pct']:>5.1f}%"
            )
        lines.append(rule)
        lines.append(f"{'TOTAL':<16} {total:>10.4f}")
        return '\n'.join(lines)

    def reset(self) -> None:
        self._stats.clear()
