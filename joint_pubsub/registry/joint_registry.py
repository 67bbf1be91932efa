"""
Joint Registry — bounded, name-indexed joint values.

Holds the authoritative value of every known joint together with its bounds.
The producer uses it for manual control (sliders, presets) and the consumer
uses it to apply incoming snapshots before handing values to the simulation.

Names are resolved once, at construction, to stable integer indices into
contiguous numpy arrays. Writes always clamp into ``[min_bound, max_bound]``.
Unknown names are ignored rather than raising: producers and consumers may
run against different joint sets.

Thread-safe: a single lock guards the arrays and is only held while values
are copied in or out.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

__all__ = [
    "JointSpec",
    "JointRegistryEntry",
    "JointSample",
    "RangeFraction",
    "PresetTarget",
    "JointRegistry",
    "joint_name_matches",
    "VELOCITY_EPSILON_S",
]

# Floor for the sampling interval used in velocity estimation
VELOCITY_EPSILON_S = 1e-9


@dataclass(frozen=True)
class JointSpec:
    """Name and bounds of one controllable joint."""

    name: str
    min_bound: float
    max_bound: float


@dataclass(frozen=True)
class JointRegistryEntry:
    """Copied-out view of one registry row."""

    name: str
    current_value: float
    min_bound: float
    max_bound: float
    last_applied_value: float


@dataclass(frozen=True)
class JointSample:
    """A joint value with its estimated velocity, taken at publish time."""

    name: str
    value: float
    velocity: float


@dataclass(frozen=True)
class RangeFraction:
    """Preset target expressed as a fraction of the joint's range.

    0.0 is ``min_bound`` and 1.0 is ``max_bound``; out-of-range fractions
    are clamped to [0, 1].
    """

    fraction: float

    def resolve(self, min_bound: float, max_bound: float) -> float:
        f = min(max(self.fraction, 0.0), 1.0)
        return min_bound + f * (max_bound - min_bound)


PresetTarget = Union[float, RangeFraction]


def joint_name_matches(full_name: str, fragment: str) -> bool:
    """True if ``full_name`` is ``fragment`` or ends with ``"/" + fragment``.

    ``"j1"`` matches ``"j1"`` and ``"left/j1"`` but not ``"xj1"``.
    """
    if not fragment:
        return False
    return full_name == fragment or full_name.endswith("/" + fragment)


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


class JointRegistry:
    """Name-indexed table of joint values and bounds."""

    def __init__(self, specs: Iterable[JointSpec | tuple[str, float, float]], initial_value: float = 0.0):
        self._lock = threading.Lock()
        names: list[str] = []
        mins: list[float] = []
        maxs: list[float] = []
        index: dict[str, int] = {}

        for spec in specs:
            if not isinstance(spec, JointSpec):
                spec = JointSpec(*spec)
            if not spec.name:
                raise ValueError("joint name must not be empty")
            if spec.name in index:
                raise ValueError(f"duplicate joint name {spec.name!r}")
            lo, hi = float(spec.min_bound), float(spec.max_bound)
            if not (math.isfinite(lo) and math.isfinite(hi)):
                raise ValueError(f"joint {spec.name!r} bounds must be finite, got [{lo}, {hi}]")
            if lo > hi:
                raise ValueError(f"joint {spec.name!r} min_bound {lo} exceeds max_bound {hi}")
            index[spec.name] = len(names)
            names.append(spec.name)
            mins.append(lo)
            maxs.append(hi)

        self._names = tuple(names)
        self._index = index
        self._min = np.array(mins, dtype=np.float64)
        self._max = np.array(maxs, dtype=np.float64)
        self._values = np.clip(np.full(len(names), float(initial_value)), self._min, self._max)
        self._last_applied = self._values.copy()

    @classmethod
    def from_bounds(cls, bounds: Mapping[str, tuple[float, float]]) -> "JointRegistry":
        """Build a registry from ``{name: (min, max)}``."""
        return cls(JointSpec(name, lo, hi) for name, (lo, hi) in bounds.items())

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def index_of(self, name: str) -> Optional[int]:
        """Stable index for ``name``, or None if the joint is unknown."""
        return self._index.get(name)

    def name_at(self, index: int) -> str:
        return self._names[index]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_value(self, name: str, target: float) -> bool:
        """Clamp ``target`` into the joint's bounds and store it.

        Returns False (and changes nothing) for unknown names or non-finite
        targets.
        """
        idx = self._index.get(name)
        if idx is None:
            logger.debug("set_value: ignoring unknown joint %r", name)
            return False
        if not math.isfinite(target):
            logger.debug("set_value: ignoring non-finite target %r for %r", target, name)
            return False
        with self._lock:
            self._values[idx] = _clamp(float(target), self._min[idx], self._max[idx])
        return True

    def apply_values(self, updates: Iterable[tuple[int, float]]) -> list[float]:
        """Write a batch of ``(index, value)`` pairs under one lock hold.

        Each value is clamped into its joint's bounds. Non-finite values leave
        the joint unchanged. Returns the stored value for each pair, in order.
        """
        updates = list(updates)
        stored: list[float] = []
        with self._lock:
            for idx, value in updates:
                if math.isfinite(value):
                    self._values[idx] = _clamp(float(value), self._min[idx], self._max[idx])
                stored.append(float(self._values[idx]))
        return stored

    def apply_preset(self, preset: Mapping[str, PresetTarget]) -> int:
        """Apply a pose given as ``{name_fragment: target}``.

        Every joint whose name matches a fragment (see ``joint_name_matches``)
        is set to the absolute target, or to the resolved ``RangeFraction``,
        clamped into bounds. ``last_applied_value`` is synced too so a preset
        jump is published with near-zero velocity.

        Returns:
            Number of joint writes performed.
        """
        writes = 0
        with self._lock:
            for fragment, target in preset.items():
                for idx, name in enumerate(self._names):
                    if not joint_name_matches(name, fragment):
                        continue
                    lo, hi = self._min[idx], self._max[idx]
                    if isinstance(target, RangeFraction):
                        value = target.resolve(lo, hi)
                    else:
                        value = float(target)
                    if not math.isfinite(value):
                        continue
                    value = _clamp(value, lo, hi)
                    self._values[idx] = value
                    self._last_applied[idx] = value
                    writes += 1
        return writes

    def zero_all(self) -> None:
        """Set every joint to 0.0 (clamped) with zero pending velocity."""
        with self._lock:
            self._values = np.clip(np.zeros(len(self._names)), self._min, self._max)
            self._last_applied = self._values.copy()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def sample(self, elapsed_s: float, commit: bool = True) -> list[JointSample]:
        """Take values and estimated velocities for publishing.

        velocity = (current - last_applied) / max(elapsed_s, VELOCITY_EPSILON_S),
        after which last_applied is set to current. With ``commit=False`` the
        baseline is left alone; pass the samples to ``commit_sample`` once
        they have actually been published.
        """
        dt = max(elapsed_s, VELOCITY_EPSILON_S)
        with self._lock:
            values = self._values.copy()
            velocities = (values - self._last_applied) / dt
            if commit:
                self._last_applied = values.copy()
        return [
            JointSample(name=name, value=float(v), velocity=float(w))
            for name, v, w in zip(self._names, values, velocities)
        ]

    def commit_sample(self, samples: Iterable[JointSample]) -> None:
        """Make the sampled values the velocity baseline (last_applied)."""
        with self._lock:
            for s in samples:
                idx = self._index.get(s.name)
                if idx is not None:
                    self._last_applied[idx] = s.value

    def value(self, name: str) -> Optional[float]:
        idx = self._index.get(name)
        if idx is None:
            return None
        with self._lock:
            return float(self._values[idx])

    def entry(self, name: str) -> Optional[JointRegistryEntry]:
        idx = self._index.get(name)
        if idx is None:
            return None
        with self._lock:
            return self._entry_locked(idx)

    def snapshot(self) -> list[JointRegistryEntry]:
        """Copy out every row, in registry order."""
        with self._lock:
            return [self._entry_locked(i) for i in range(len(self._names))]

    def _entry_locked(self, idx: int) -> JointRegistryEntry:
        return JointRegistryEntry(
            name=self._names[idx],
            current_value=float(self._values[idx]),
            min_bound=float(self._min[idx]),
            max_bound=float(self._max[idx]),
            last_applied_value=float(self._last_applied[idx]),
        )
