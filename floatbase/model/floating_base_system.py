import dataclasses
import logging
import pathlib
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from floatbase.core.constants import (
    Coords6d,
    EndEffectorType,
    JointMotion,
    JointType,
    SystemType,
    angular_part,
    linear_part,
)
from floatbase.core.errors import DimensionMismatchError
from floatbase.core.rbd_algorithms import RBDAlgorithms
from floatbase.model.abc_factories import Limits
from floatbase.model.rigid_body_tree import RigidBodyTree
from floatbase.model.std_factories.std_model import URDFModelFactory, file_to_xml
from floatbase.model.system_description import SystemDescription
from floatbase.model.urdf import (
    get_end_effectors,
    get_floating_base_joint_motion,
    get_joint_limits,
    get_joint_names,
)
from floatbase.numpy.spatial_math_numpy import SpatialMathNumpy

# generalized index of every base coordinate of a full floating base, the
# generalized vector starts with the linear part
FULL_BASE_INDEX = {
    Coords6d.LX: 0,
    Coords6d.LY: 1,
    Coords6d.LZ: 2,
    Coords6d.AX: 3,
    Coords6d.AY: 4,
    Coords6d.AZ: 5,
}


@dataclasses.dataclass
class FloatingBaseJoint:
    """One of the six base coordinates. id is the generalized index of the
    coordinate and is meaningful only when the joint is active."""

    active: bool = False
    id: int = 0
    name: str = ""
    constrained: bool = False


class FloatingBaseSystem:
    """Floating-base description of a robot: base coordinates, actuated joints,
    end-effectors and feet, and the mapping between the minimal base/joint
    representation and the generalized coordinates.

    The minimal base vector is ordered as Coords6d (angular first). The
    generalized vector is

    - [joints] for a fixed base,
    - [linear, angular, joints] for a full (possibly constrained) floating base,
    - [active base coordinates by id, joints] for a virtual floating base.
    """

    def __init__(
        self,
        full: bool = False,
        num_joints: int = 0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            full (bool): activates the six base coordinates
            num_joints (int): number of actuated joints
            logger (logging.Logger, optional): receives the diagnostics of the model
        """
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._slots: List[FloatingBaseJoint] = [FloatingBaseJoint() for _ in Coords6d]
        if full:
            self.set_floating_base_joint(FloatingBaseJoint(active=True))
        self._type_override: Optional[SystemType] = None
        self.num_joints = num_joints
        self.num_floating_joints = 1 if full else 0
        self.urdf = ""
        self.system_file: Optional[str] = None
        self.tree: Optional[RigidBodyTree] = None
        self._rbd: Optional[RBDAlgorithms] = None
        self.floating_body_name = ""
        self.joints: Dict[str, int] = {}
        self.joint_names: List[str] = []
        self.floating_joint_names: List[str] = []
        self.joint_limits: Dict[str, Limits] = {}
        self.end_effectors: Dict[str, int] = {}
        self.end_effector_names: List[str] = []
        self.feet: Dict[str, int] = {}
        self.foot_names: List[str] = []
        self.default_joint_pos = np.zeros(num_joints)

    @classmethod
    def from_urdf(
        cls,
        urdf: Union[str, pathlib.Path],
        system_file: Optional[Union[str, pathlib.Path]] = None,
        gravity: npt.ArrayLike = None,
        logger: Optional[logging.Logger] = None,
    ) -> "FloatingBaseSystem":
        """
        Args:
            urdf (Union[str, pathlib.Path]): urdf path or urdf string
            system_file (Union[str, pathlib.Path], optional): yaml system description
            gravity (npt.ArrayLike, optional): gravity vector, defaults to [0, 0, -9.81]
            logger (logging.Logger, optional): receives the diagnostics of the model

        Returns:
            FloatingBaseSystem: the system
        """
        system = cls(logger=logger)
        system.reset_from_urdf_model(urdf, system_file, gravity)
        return system

    def reset_from_urdf_file(
        self,
        urdf_file: Union[str, pathlib.Path],
        system_file: Optional[Union[str, pathlib.Path]] = None,
        gravity: npt.ArrayLike = None,
    ) -> None:
        self.reset_from_urdf_model(file_to_xml(urdf_file), system_file, gravity)

    def reset_from_urdf_model(
        self,
        urdf_model: Union[str, pathlib.Path],
        system_file: Optional[Union[str, pathlib.Path]] = None,
        gravity: npt.ArrayLike = None,
    ) -> None:
        """Resets the whole system from a urdf description

        Args:
            urdf_model (Union[str, pathlib.Path]): urdf string or path
            system_file (Union[str, pathlib.Path], optional): yaml system description
            gravity (npt.ArrayLike, optional): gravity vector, defaults to [0, 0, -9.81]

        Raises:
            ValueError, FileNotFoundError: the description is rejected, the system is left unchanged
        """
        # the system is replaced only once the whole description is accepted
        staged = FloatingBaseSystem(logger=self.logger)
        staged._load_urdf_model(urdf_model, system_file, gravity)
        vars(self).update(vars(staged))

    def _load_urdf_model(
        self,
        urdf_model: Union[str, pathlib.Path],
        system_file: Optional[Union[str, pathlib.Path]],
        gravity: npt.ArrayLike,
    ) -> None:
        factory = URDFModelFactory(urdf_model, SpatialMathNumpy)
        urdf = factory.urdf_desc
        self.tree = RigidBodyTree.build(factory, gravity)
        self._rbd = RBDAlgorithms(self.tree, SpatialMathNumpy)
        self.urdf = factory.xml_string
        self.system_file = None if system_file is None else str(system_file)

        self._slots = [FloatingBaseJoint() for _ in Coords6d]
        self._type_override = None

        # floating-base joints
        floating_joints = get_joint_names(urdf, JointType.FLOATING)
        self.num_floating_joints = len(floating_joints)
        self.floating_joint_names = []
        for joint_name, motion in get_floating_base_joint_motion(urdf).items():
            self.floating_joint_names.append(joint_name)
            joint = FloatingBaseJoint(
                active=True, id=floating_joints[joint_name], name=joint_name
            )
            if motion == JointMotion.FULL:
                self.set_floating_base_joint(joint)
            else:
                self.set_floating_base_joint(joint, Coords6d(motion))

        base_id = 6 if self.is_fully_floating_base() else self.get_floating_base_dof()
        if base_id >= self.tree.N:
            raise ValueError(
                f"The floating base of {self.tree.name} needs {base_id} bodies, the tree has {self.tree.N}"
            )
        self.floating_body_name = self.tree.bodies[base_id].name

        # actuated joints
        free_joints = get_joint_names(urdf, JointType.FREE)
        self.joint_limits = get_joint_limits(urdf)
        self.num_joints = len(free_joints) - self.num_floating_joints
        self.joints = {}
        for joint_name, idx in free_joints.items():
            if joint_name not in floating_joints:
                self.set_joint(joint_name, idx - self.num_floating_joints)
        self.joint_names = list(self.joints)

        # end-effectors and system description
        self.end_effectors = get_end_effectors(urdf)
        self.end_effector_names = list(self.end_effectors)
        self.feet = {}
        self.foot_names = []
        self.default_joint_pos = np.zeros(self.num_joints)
        if system_file is not None:
            self.reset_system_description(system_file)

        if not self.foot_names:
            self.logger.warning("setting up all the end-effectors are feet")
            self.foot_names = list(self.end_effector_names)
            self.feet = dict(self.end_effectors)

    def reset_system_description(self, filename: Union[str, pathlib.Path]) -> None:
        """Reads the feet and the default posture from a yaml system description

        Args:
            filename (Union[str, pathlib.Path]): the yaml file
        """
        description = SystemDescription.load(filename)
        if description.feet is not None:
            self.foot_names = sorted(description.feet)
            for name in self.foot_names:
                if name not in self.end_effectors:
                    self.end_effectors[name] = len(self.end_effectors)
                    self.end_effector_names.append(name)
            self.feet = {name: self.end_effectors[name] for name in self.foot_names}

        for j, name in enumerate(self.joint_names):
            if name in description.default_pose:
                self.default_joint_pos[j] = description.default_pose[name]

    def set_floating_base_joint(
        self, joint: FloatingBaseJoint, coord: Optional[Coords6d] = None
    ) -> None:
        """Sets one base coordinate, or the six of them when coord is None"""
        if coord is None:
            for c in Coords6d:
                self._slots[c] = dataclasses.replace(joint, id=FULL_BASE_INDEX[c])
        else:
            self._slots[coord] = dataclasses.replace(joint)

    def set_floating_base_constraint(self, coord: Coords6d) -> None:
        self._slots[coord].constrained = True

    def set_type_of_dynamic_system(self, type_of_system: Optional[SystemType]) -> None:
        """Overrides the system type derived from the base coordinates, None
        removes the override"""
        self._type_override = type_of_system

    def set_joint(self, name: str, id: int) -> None:
        self.joints[name] = id

    def set_joint_dof(self, num_joints: int) -> None:
        self.num_joints = num_joints
        self.default_joint_pos = np.zeros(num_joints)

    def get_urdf_model(self) -> str:
        return self.urdf

    def get_system_description_file(self) -> Optional[str]:
        return self.system_file

    def get_tree(self) -> RigidBodyTree:
        return self._require_tree()

    def _require_tree(self) -> RigidBodyTree:
        if self.tree is None:
            raise ValueError("The system has no kinematic tree, reset it from a urdf")
        return self.tree

    def get_total_mass(self) -> float:
        return self._require_tree().get_total_mass()

    def get_body_mass(self, body_name: str) -> float:
        return self._require_tree().get_body_mass(body_name)

    def get_gravity_vector(self) -> np.ndarray:
        return self._require_tree().gravity.copy()

    def get_gravity_acceleration(self) -> float:
        return float(np.linalg.norm(self._require_tree().gravity))

    def get_gravity_direction(self) -> np.ndarray:
        gravity = self._require_tree().gravity
        return gravity / np.linalg.norm(gravity)

    def get_system_com(
        self, base_pos: npt.ArrayLike, joint_pos: npt.ArrayLike
    ) -> np.ndarray:
        """
        Args:
            base_pos (npt.ArrayLike): base position in Coords6d order
            joint_pos (npt.ArrayLike): joint positions

        Returns:
            np.ndarray: the center of mass of the system in world coordinates
        """
        self._require_tree()
        q = self.to_generalized_joint_state(base_pos, joint_pos)
        _, com, _ = self._rbd.center_of_mass(q)
        return com

    def get_system_com_rate(
        self,
        base_pos: npt.ArrayLike,
        joint_pos: npt.ArrayLike,
        base_vel: npt.ArrayLike,
        joint_vel: npt.ArrayLike,
    ) -> np.ndarray:
        """
        Returns:
            np.ndarray: the velocity of the center of mass of the system in world coordinates
        """
        self._require_tree()
        q = self.to_generalized_joint_state(base_pos, joint_pos)
        qd = self.to_generalized_joint_state(base_vel, joint_vel)
        _, _, com_rate = self._rbd.center_of_mass(q, qd)
        return com_rate

    def get_floating_base_com(self) -> np.ndarray:
        return self._require_tree().get_body_com(self.floating_body_name)

    def get_body_com(self, body_name: str) -> np.ndarray:
        return self._require_tree().get_body_com(body_name)

    def get_system_dof(self) -> int:
        system_type = self.get_type_of_dynamic_system()
        if system_type in [SystemType.FLOATING_BASE, SystemType.CONSTRAINED_FLOATING_BASE]:
            return 6 + self.num_joints
        if system_type == SystemType.VIRTUAL_FLOATING_BASE:
            return self.get_floating_base_dof() + self.num_joints
        return self.num_joints

    def get_floating_base_dof(self) -> int:
        """Number of active base coordinates"""
        return sum(slot.active for slot in self._slots)

    def get_joint_dof(self) -> int:
        return self.num_joints

    def get_floating_base_joint(self, coord: Coords6d) -> FloatingBaseJoint:
        return dataclasses.replace(self._slots[coord])

    def get_floating_base_joint_coordinate(self, id: int) -> Coords6d:
        """
        Args:
            id (int): generalized index of a base coordinate

        Returns:
            Coords6d: the active base coordinate with that id
        """
        for coord in Coords6d:
            slot = self._slots[coord]
            if slot.active and slot.id == id:
                return coord
        raise ValueError(f"The {id} id doesn't belong to a floating-base joint")

    def get_floating_base_name(self) -> str:
        return self.floating_body_name

    def get_joint_id(self, joint_name: str) -> int:
        if joint_name not in self.joints:
            raise ValueError(f"{joint_name} is not an actuated joint of the system")
        return self.joints[joint_name]

    def get_joints(self) -> Dict[str, int]:
        return dict(self.joints)

    def get_joint_limits(self) -> Dict[str, Limits]:
        return dict(self.joint_limits)

    def get_joint_limit(self, name: str) -> Limits:
        if name not in self.joint_limits:
            raise ValueError(f"{name} has no joint limits")
        return self.joint_limits[name]

    def get_lower_limit(self, name: str) -> float:
        return self.get_joint_limit(name).lower

    def get_upper_limit(self, name: str) -> float:
        return self.get_joint_limit(name).upper

    def get_velocity_limit(self, name: str) -> float:
        return self.get_joint_limit(name).velocity

    def get_effort_limit(self, name: str) -> float:
        return self.get_joint_limit(name).effort

    def get_floating_joint_names(self) -> List[str]:
        return list(self.floating_joint_names)

    def get_joint_names(self) -> List[str]:
        return list(self.joint_names)

    def get_type_of_dynamic_system(self) -> SystemType:
        """The system type is a function of the base coordinates, unless it
        has been overridden"""
        if self._type_override is not None:
            return self._type_override
        num_active = self.get_floating_base_dof()
        if num_active == len(Coords6d):
            if self.has_floating_base_constraints():
                return SystemType.CONSTRAINED_FLOATING_BASE
            return SystemType.FLOATING_BASE
        if num_active > 0:
            return SystemType.VIRTUAL_FLOATING_BASE
        return SystemType.FIXED_BASE

    def is_fully_floating_base(self) -> bool:
        return all(slot.active for slot in self._slots)

    def is_virtual_floating_base_robot(self) -> bool:
        return self.get_type_of_dynamic_system() == SystemType.VIRTUAL_FLOATING_BASE

    def is_constrained_floating_base_robot(self) -> bool:
        return (
            self.get_type_of_dynamic_system() == SystemType.CONSTRAINED_FLOATING_BASE
        )

    def has_floating_base_constraints(self) -> bool:
        return any(slot.constrained for slot in self._slots)

    def get_number_of_end_effectors(
        self, type: EndEffectorType = EndEffectorType.ALL
    ) -> int:
        return len(self.get_end_effectors(type))

    def get_end_effector_id(self, contact_name: str) -> int:
        if contact_name not in self.end_effectors:
            raise ValueError(f"{contact_name} is not an end-effector of the system")
        return self.end_effectors[contact_name]

    def get_end_effectors(
        self, type: EndEffectorType = EndEffectorType.ALL
    ) -> Dict[str, int]:
        if type == EndEffectorType.ALL:
            return dict(self.end_effectors)
        return dict(self.feet)

    def get_end_effector_names(
        self, type: EndEffectorType = EndEffectorType.ALL
    ) -> List[str]:
        if type == EndEffectorType.ALL:
            return list(self.end_effector_names)
        return list(self.foot_names)

    def get_default_posture(self) -> np.ndarray:
        return self.default_joint_pos.copy()

    def to_generalized_joint_state(
        self, base_state: npt.ArrayLike, joint_state: npt.ArrayLike
    ) -> np.ndarray:
        """
        Args:
            base_state (npt.ArrayLike): base state in Coords6d order, not read for a fixed base
            joint_state (npt.ArrayLike): joint state

        Returns:
            np.ndarray: the generalized state
        """
        joint_state = np.asarray(joint_state, dtype=float)
        if joint_state.shape != (self.num_joints,):
            raise DimensionMismatchError("joint state", self.num_joints, joint_state.size)

        system_type = self.get_type_of_dynamic_system()
        if system_type == SystemType.FIXED_BASE:
            return joint_state.copy()

        base_state = np.asarray(base_state, dtype=float)
        if base_state.shape != (len(Coords6d),):
            raise DimensionMismatchError("base state", len(Coords6d), base_state.size)

        if system_type in [SystemType.FLOATING_BASE, SystemType.CONSTRAINED_FLOATING_BASE]:
            return np.concatenate(
                [linear_part(base_state), angular_part(base_state), joint_state]
            )

        virtual_base = np.zeros(self.get_floating_base_dof())
        for coord in Coords6d:
            slot = self._slots[coord]
            if slot.active:
                virtual_base[slot.id] = base_state[coord]
        return np.concatenate([virtual_base, joint_state])

    def from_generalized_joint_state(
        self, generalized_state: npt.ArrayLike
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Args:
            generalized_state (npt.ArrayLike): the generalized state

        Returns:
            base_state (np.ndarray): base state in Coords6d order, zero where inactive
            joint_state (np.ndarray): joint state
        """
        generalized_state = np.asarray(generalized_state, dtype=float)
        system_dof = self.get_system_dof()
        if generalized_state.shape != (system_dof,):
            raise DimensionMismatchError(
                "generalized state", system_dof, generalized_state.size
            )

        base_state = np.zeros(len(Coords6d))
        system_type = self.get_type_of_dynamic_system()
        if system_type in [SystemType.FLOATING_BASE, SystemType.CONSTRAINED_FLOATING_BASE]:
            base_state[Coords6d.LX :] = generalized_state[:3]
            base_state[: Coords6d.LX] = generalized_state[3:6]
            joint_state = generalized_state[6:]
        elif system_type == SystemType.VIRTUAL_FLOATING_BASE:
            for coord in Coords6d:
                slot = self._slots[coord]
                if slot.active:
                    base_state[coord] = generalized_state[slot.id]
            joint_state = generalized_state[self.get_floating_base_dof() :]
        else:
            joint_state = generalized_state
        return base_state, joint_state.copy()

    def _base_offset(self) -> int:
        return 6 if self.is_fully_floating_base() else self.get_floating_base_dof()

    def get_branch(self, body_name: str) -> Tuple[int, int]:
        """Walks from a body up to the floating-base body

        Args:
            body_name (str): body, movable or fixed

        Returns:
            q_index (int): generalized index of the joint closest to the base
            num_dof (int): number of coordinates of the branch
        """
        tree = self._require_tree()
        base_id = self._base_offset()
        parent_id = tree.movable_parent(tree.body_id(body_name))

        q_index = base_id
        num_dof = 0
        while parent_id != base_id:
            if parent_id < base_id:
                raise ValueError(
                    f"{body_name} is not supported by the floating-base body {self.floating_body_name}"
                )
            body = tree.bodies[parent_id]
            q_index = body.q_index
            num_dof += body.dof
            parent_id = body.parent
        return q_index, num_dof

    def _branch_slice(self, joint_state: np.ndarray, body_name: str) -> slice:
        if joint_state.shape != (self.num_joints,):
            raise DimensionMismatchError("joint state", self.num_joints, joint_state.size)
        q_index, num_dof = self.get_branch(body_name)
        start = q_index - self._base_offset()
        return slice(start, start + num_dof)

    def set_branch_state(
        self,
        joint_state: npt.ArrayLike,
        branch_state: npt.ArrayLike,
        body_name: str,
    ) -> np.ndarray:
        """
        Args:
            joint_state (npt.ArrayLike): joint state
            branch_state (npt.ArrayLike): new state of the branch
            body_name (str): the body ending the branch

        Returns:
            np.ndarray: a copy of the joint state with the branch replaced
        """
        new_joint_state = np.array(joint_state, dtype=float)
        branch_state = np.asarray(branch_state, dtype=float)
        branch = self._branch_slice(new_joint_state, body_name)
        num_dof = branch.stop - branch.start
        if branch_state.shape != (num_dof,):
            raise DimensionMismatchError("branch state", num_dof, branch_state.size)
        new_joint_state[branch] = branch_state
        return new_joint_state

    def get_branch_state(
        self, joint_state: npt.ArrayLike, body_name: str
    ) -> np.ndarray:
        """
        Args:
            joint_state (npt.ArrayLike): joint state
            body_name (str): the body ending the branch

        Returns:
            np.ndarray: the state of the branch
        """
        joint_state = np.asarray(joint_state, dtype=float)
        return joint_state[self._branch_slice(joint_state, body_name)].copy()

    def log_model_info(self, level: int = logging.INFO) -> None:
        """Logs the degrees of freedom and the hierarchy of the model"""
        tree = self._require_tree()
        self.logger.log(level, "\n%s", tree.dof_overview())
        self.logger.log(level, "\n%s", tree.hierarchy())
