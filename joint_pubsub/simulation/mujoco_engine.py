"""MuJoCo simulation adapter for the joint subscriber.

The subscriber drives a MuJoCo model by joint name: it enumerates the
model's joints and bounds to build its joint registry, writes received
angles/velocities into ``qpos``/``qvel``, and advances the simulation one
step per host loop iteration.

Only the first scalar degree of freedom of each joint is addressed. That is
exact for hinge and slide joints; for ball and free joints it drives a single
coordinate (for a free joint, the x position), and callers needing full
multi-DOF control must not rely on this path.

Usage:
    engine = MuJoCoEngine()
    engine.load_default_model()            # six-hinge arm
    registry = engine.build_registry()     # names + bounds from the model
    engine.apply_joint("elbow", 0.5, 0.0)
    engine.step()
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from joint_pubsub.publisher.sources import DEFAULT_JOINT_NAMES
from joint_pubsub.registry.joint_registry import JointRegistry, JointSpec

logger = logging.getLogger(__name__)

# Fallback range (radians) for joints without usable limits in the model
DEFAULT_UNLIMITED_RANGE_RAD: Tuple[float, float] = (-1.5, 1.5)


@dataclass
class SimulationConfig:
    """Configuration for the subscriber-side simulation."""

    realtime: bool = True  # sleep one model timestep per step


def _generate_arm_mjcf(joint_names: Sequence[str] = DEFAULT_JOINT_NAMES) -> str:
    """MuJoCo XML for a six-hinge arm whose joints match the trajectory publisher."""
    if len(joint_names) != 6:
        raise ValueError(f"default arm model needs 6 joint names, got {len(joint_names)}")
    pan, lift, elbow, wrist1, wrist2, wrist3 = joint_names
    return f"""<?xml version="1.0" encoding="utf-8"?>
<mujoco model="six_axis_arm">
  <compiler angle="radian" autolimits="true"/>
  <option timestep="0.002" gravity="0 0 -9.81" integrator="implicit"/>

  <default>
    <joint armature="0.1" damping="5.0" frictionloss="0.1"/>
    <geom condim="3" friction="1.0 0.005 0.0001"/>
  </default>

  <worldbody>
    <light ambient="0.2 0.2 0.2" pos="0 0 3"/>
    <geom name="floor" type="plane" size="2 2 0.1" rgba="0.8 0.8 0.8 1"/>

    <body name="base_link" pos="0 0 0.03">
      <geom name="base_geom" type="cylinder" size="0.06 0.03" rgba="0.2 0.2 0.2 1" mass="2.0"/>

      <body name="shoulder" pos="0 0 0.1">
        <joint name="{pan}" type="hinge" axis="0 0 1" range="-3.1416 3.1416"/>
        <geom name="shoulder_geom" type="cylinder" size="0.05 0.06" rgba="0.3 0.3 0.3 1" mass="1.5"/>

        <body name="upper_arm" pos="0 0 0.06">
          <joint name="{lift}" type="hinge" axis="0 1 0" range="-1.571 1.571"/>
          <geom name="upper_arm_geom" type="capsule" fromto="0 0 0 0 0 0.3"
                size="0.04" rgba="0.4 0.4 0.4 1" mass="1.2"/>

          <body name="forearm" pos="0 0 0.3">
            <joint name="{elbow}" type="hinge" axis="0 1 0" range="-1.571 1.571"/>
            <geom name="forearm_geom" type="capsule" fromto="0 0 0 0 0 0.25"
                  size="0.035" rgba="0.3 0.3 0.3 1" mass="1.0"/>

            <body name="wrist_1_link" pos="0 0 0.25">
              <joint name="{wrist1}" type="hinge" axis="0 1 0" range="-1.571 1.571"/>
              <geom name="wrist_1_geom" type="capsule" fromto="0 0 0 0 0 0.08"
                    size="0.025" rgba="0.4 0.4 0.4 1" mass="0.5"/>

              <body name="wrist_2_link" pos="0 0 0.08">
                <joint name="{wrist2}" type="hinge" axis="0 0 1" range="-3.1416 3.1416"/>
                <geom name="wrist_2_geom" type="cylinder" size="0.025 0.02"
                      rgba="0.3 0.3 0.3 1" mass="0.4"/>

                <body name="wrist_3_link" pos="0 0 0.04">
                  <joint name="{wrist3}" type="hinge" axis="0 1 0" range="-1.571 1.571"/>
                  <geom name="tool_geom" type="box" size="0.02 0.03 0.04"
                        pos="0 0 0.04" rgba="0.1 0.6 0.1 1" mass="0.2"/>
                </body>
              </body>
            </body>
          </body>
        </body>
      </body>
    </body>
  </worldbody>
</mujoco>"""


class MuJoCoEngine:
    """Name-addressed MuJoCo model for the joint subscriber."""

    def __init__(self, config: Optional[SimulationConfig] = None):
        self._config = config or SimulationConfig()
        self._model = None
        self._data = None
        self._source = None
        # joint_name -> (qpos address, dof address), resolved once at load
        self._joint_addr: Dict[str, Tuple[int, int]] = {}
        self._joint_specs: List[JointSpec] = []

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    @property
    def model(self):
        return self._model

    @property
    def data(self):
        return self._data

    @property
    def timestep(self) -> float:
        if not self.is_loaded:
            raise RuntimeError("Model not loaded. Call load_default_model() first.")
        return float(self._model.opt.timestep)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_default_model(self, joint_names: Sequence[str] = DEFAULT_JOINT_NAMES) -> None:
        """Load the built-in six-hinge arm."""
        self.load_xml_string(_generate_arm_mjcf(joint_names), source="<default arm>")

    def load_xml_string(self, xml: str, source: str = "<string>") -> None:
        mujoco = _import_mujoco()
        self._set_model(mujoco.MjModel.from_xml_string(xml), source)

    def load_path(self, path: str | Path) -> None:
        """Load an MJCF file (``<include file=.../>`` resolved relative to it)."""
        mujoco = _import_mujoco()
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            raise FileNotFoundError(f"MJCF model not found: {resolved}")
        self._set_model(mujoco.MjModel.from_xml_path(str(resolved)), str(resolved))

    def _set_model(self, model, source: str) -> None:
        mujoco = _import_mujoco()
        self._model = model
        self._data = mujoco.MjData(model)
        self._source = source
        self._joint_addr = {}
        self._joint_specs = []

        for i in range(model.njnt):
            name = mujoco.mj_id2name(model, mujoco.mjtObj.mjOBJ_JOINT, i)
            if not name:
                continue
            self._joint_addr[name] = (int(model.jnt_qposadr[i]), int(model.jnt_dofadr[i]))
            lo, hi = _joint_bounds(bool(model.jnt_limited[i]), model.jnt_range[i])
            self._joint_specs.append(JointSpec(name, lo, hi))

        mujoco.mj_forward(self._model, self._data)
        logger.info(
            "MuJoCo model loaded from %s: %d bodies, %d named joints",
            source, model.nbody, len(self._joint_specs),
        )

    # ------------------------------------------------------------------
    # Joint enumeration
    # ------------------------------------------------------------------

    def joint_specs(self, filter_prefixes: Sequence[str] = ()) -> List[JointSpec]:
        """Named joints and their bounds, in model order.

        Args:
            filter_prefixes: Keep only joints whose name starts with one of
                these (empty prefixes are ignored). No prefixes keeps all.
        """
        if not self.is_loaded:
            raise RuntimeError("Model not loaded. Call load_default_model() first.")
        prefixes = [p for p in filter_prefixes if p]
        if not prefixes:
            return list(self._joint_specs)
        return [s for s in self._joint_specs if any(s.name.startswith(p) for p in prefixes)]

    def build_registry(self, filter_prefixes: Sequence[str] = (), sort_names: bool = False) -> JointRegistry:
        """Joint registry for this model's joints."""
        specs = self.joint_specs(filter_prefixes)
        if sort_names:
            specs.sort(key=lambda s: s.name)
        return JointRegistry(specs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def apply_joint(self, name: str, angle: float, velocity: float) -> bool:
        """Write the first scalar DOF of joint ``name``.

        Returns False for names the model does not have.
        """
        if not self.is_loaded:
            raise RuntimeError("Model not loaded. Call load_default_model() first.")
        addr = self._joint_addr.get(name)
        if addr is None:
            return False
        qpos_adr, dof_adr = addr
        self._data.qpos[qpos_adr] = angle
        self._data.qvel[dof_adr] = velocity
        return True

    def joint_position(self, name: str) -> Optional[float]:
        addr = self._joint_addr.get(name)
        if addr is None or not self.is_loaded:
            return None
        return float(self._data.qpos[addr[0]])

    def joint_velocity(self, name: str) -> Optional[float]:
        addr = self._joint_addr.get(name)
        if addr is None or not self.is_loaded:
            return None
        return float(self._data.qvel[addr[1]])

    def forward(self) -> None:
        """Recompute derived quantities without advancing time."""
        if not self.is_loaded:
            return
        mujoco = _import_mujoco()
        mujoco.mj_forward(self._model, self._data)

    def step(self) -> None:
        """Advance the simulation by one timestep."""
        if not self.is_loaded:
            return
        mujoco = _import_mujoco()
        mujoco.mj_step(self._model, self._data)

    def reset(self) -> None:
        if not self.is_loaded:
            return
        mujoco = _import_mujoco()
        mujoco.mj_resetData(self._model, self._data)
        mujoco.mj_forward(self._model, self._data)

    def launch_viewer(self):
        """Open the passive MuJoCo viewer; returns its handle."""
        if not self.is_loaded:
            raise RuntimeError("Model not loaded. Call load_default_model() first.")
        import mujoco.viewer

        return mujoco.viewer.launch_passive(self._model, self._data)


def _joint_bounds(limited: bool, joint_range: Sequence[float]) -> Tuple[float, float]:
    if limited:
        lo, hi = float(joint_range[0]), float(joint_range[1])
        if math.isfinite(lo) and math.isfinite(hi) and lo < hi:
            return lo, hi
    return DEFAULT_UNLIMITED_RANGE_RAD


def _import_mujoco():
    try:
        import mujoco
    except ImportError:
        raise ImportError(
            "MuJoCo not installed. Install with: pip install 'joint-pubsub[sim]'"
        ) from None
    return mujoco
