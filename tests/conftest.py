import dataclasses
import pathlib

import numpy as np
import pytest

MODELS = pathlib.Path(__file__).parent / "models"

PENDULUM_URDF = """<robot name="pendulum">
  <link name="world"/>
  <joint name="floating_base" type="floating">
    <parent link="world"/>
    <child link="base_link"/>
  </joint>
  <link name="base_link">
    <inertial>
      <origin xyz="0 0 0" rpy="0 0 0"/>
      <mass value="2.0"/>
      <inertia ixx="0.1" ixy="0" ixz="0" iyy="0.1" iyz="0" izz="0.1"/>
    </inertial>
  </link>
  <joint name="pendulum_joint" type="revolute">
    <origin xyz="0 0 -0.1" rpy="0 0 0"/>
    <parent link="base_link"/>
    <child link="pendulum"/>
    <axis xyz="0 1 0"/>
    <limit effort="10" lower="-3.14" upper="3.14" velocity="10"/>
  </joint>
  <link name="pendulum">
    <inertial>
      <origin xyz="{com}" rpy="0 0 0"/>
      <mass value="{mass}"/>
      <inertia ixx="{inertia}" ixy="0" ixz="0" iyy="{inertia}" iyz="0" izz="{inertia}"/>
    </inertial>
  </link>
</robot>
"""


@dataclasses.dataclass
class State:
    q: np.ndarray
    qd: np.ndarray
    qdd: np.ndarray


@pytest.fixture
def random_state():
    """Returns a factory of seeded random states"""

    def _random_state(n_dof: int, seed: int = 42) -> State:
        rng = np.random.default_rng(seed)
        return State(
            q=rng.uniform(-1.0, 1.0, n_dof),
            qd=rng.uniform(-1.0, 1.0, n_dof),
            qdd=rng.uniform(-1.0, 1.0, n_dof),
        )

    return _random_state


@pytest.fixture
def quadruped_path() -> pathlib.Path:
    return MODELS / "quadruped.urdf"


@pytest.fixture
def biped_path() -> pathlib.Path:
    return MODELS / "planar_biped.urdf"


@pytest.fixture
def biped_description_path() -> pathlib.Path:
    return MODELS / "planar_biped.yaml"


@pytest.fixture
def arm_path() -> pathlib.Path:
    return MODELS / "arm.urdf"


@pytest.fixture
def pendulum_urdf():
    """Returns a factory of floating pendulum urdf strings"""

    def _pendulum(mass: float = 1.0, com: str = "0 0 -0.2", inertia: float = 0.01):
        return PENDULUM_URDF.format(mass=mass, com=com, inertia=inertia)

    return _pendulum
