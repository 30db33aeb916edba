import dataclasses
import enum
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
import numpy.typing as npt
from prettytable import PrettyTable

from floatbase.model.abc_factories import Joint, Link, ModelFactory
from floatbase.model.std_factories.std_joint import VirtualJoint
from floatbase.model.tree import Tree
from floatbase.numpy.spatial_math_numpy import SpatialMathNumpy

logger = logging.getLogger(__name__)

GRAVITY = np.array([0.0, 0.0, -9.81])

# order of the single dof bodies a floating joint is expanded into
FLOATING_BASE_COORDS = [
    ("TX", "prismatic", [1, 0, 0]),
    ("TY", "prismatic", [0, 1, 0]),
    ("TZ", "prismatic", [0, 0, 1]),
    ("RX", "revolute", [1, 0, 0]),
    ("RY", "revolute", [0, 1, 0]),
    ("RZ", "revolute", [0, 0, 1]),
]


class BodyKind(enum.Enum):
    MOVABLE = "movable"
    FIXED = "fixed"


@dataclasses.dataclass(frozen=True)
class BodyId:
    """Index of a body, tagged with the table it lives in"""

    kind: BodyKind
    index: int


@dataclasses.dataclass
class Body:
    """Movable body. The root body has no joint."""

    name: str
    joint: Optional[Joint]
    parent: int
    q_index: int
    dof: int
    inertia: np.ndarray
    mass: float
    com: np.ndarray
    is_virtual: bool = False
    # transform from the parent body to the joint frame when the body hangs
    # from a fixed body
    H_tree: np.ndarray = dataclasses.field(default_factory=lambda: np.eye(4))
    children: List[int] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class FixedBody:
    """Body rigidly attached to a movable one, its inertia is merged into it"""

    name: str
    movable_parent: int
    H_parent: np.ndarray
    mass: float
    com: np.ndarray


class RigidBodyTree:
    """Flat, topologically ordered description of a kinematic tree.

    Body 0 is the root. Bodies are appended so that the parent of body i always
    has an index lower than i. Fixed bodies live in their own table and are
    addressed through a BodyId.
    """

    def __init__(self, name: str = "", gravity: npt.ArrayLike = None) -> None:
        self.math = SpatialMathNumpy
        self.name = name
        self.gravity = GRAVITY.copy() if gravity is None else np.asarray(gravity, dtype=float)
        self.bodies: List[Body] = []
        self.fixed_bodies: List[FixedBody] = []
        self._ids: Dict[str, BodyId] = {}
        self.q_size = 0

    def set_root(self, name: str) -> BodyId:
        if self.bodies:
            raise ValueError(f"The tree already has the root {self.bodies[0].name}")
        root = Body(
            name=name,
            joint=None,
            parent=-1,
            q_index=0,
            dof=0,
            inertia=np.zeros((6, 6)),
            mass=0.0,
            com=np.zeros(3),
        )
        return self._append(root)

    def _append(self, body: Body) -> BodyId:
        if body.name in self._ids:
            raise ValueError(f"Body {body.name} is already in the tree")
        self.bodies.append(body)
        body_id = BodyId(BodyKind.MOVABLE, len(self.bodies) - 1)
        if body.parent >= 0:
            self.bodies[body.parent].children.append(body_id.index)
        self._ids[body.name] = body_id
        self.q_size += body.dof
        return body_id

    def add_body(
        self,
        parent: BodyId,
        joint: Joint,
        name: str,
        inertia: npt.ArrayLike = None,
        mass: float = 0.0,
        com: npt.ArrayLike = None,
        is_virtual: bool = False,
    ) -> BodyId:
        """Adds a movable body

        Args:
            parent (BodyId): the parent body, movable or fixed
            joint (Joint): the joint connecting the body to its parent
            name (str): the body name
            inertia (npt.ArrayLike): 6x6 spatial inertia in the body frame
            mass (float): the body mass
            com (npt.ArrayLike): the center of mass in the body frame
            is_virtual (bool): True for massless bodies inside a floating base

        Returns:
            BodyId: the id of the new body
        """
        if joint.dof == 0 or joint.type == "floating":
            raise ValueError(
                f"Joint {joint.name} of type {joint.type} cannot connect a single movable body"
            )
        body = Body(
            name=name,
            joint=joint,
            parent=self.movable_parent(parent),
            q_index=self.q_size,
            dof=joint.dof,
            inertia=np.zeros((6, 6)) if inertia is None else np.asarray(inertia),
            mass=float(mass),
            com=np.zeros(3) if com is None else np.asarray(com, dtype=float),
            is_virtual=is_virtual,
            H_tree=self._H_from_movable_parent(parent),
        )
        return self._append(body)

    def add_floating_base(
        self, parent: BodyId, joint: Joint, link: Link
    ) -> BodyId:
        """Expands a six dof floating joint into three prismatic and three
        revolute single dof bodies. The first five are virtual, the last one
        carries the link.

        Returns:
            BodyId: the id of the body carrying the link
        """
        body_id = parent
        for i, (coord, joint_type, axis) in enumerate(FLOATING_BASE_COORDS):
            last = i == len(FLOATING_BASE_COORDS) - 1
            virtual_joint = VirtualJoint(
                name=f"{joint.name}_{coord}",
                parent=joint.parent if i == 0 else f"{joint.name}_{FLOATING_BASE_COORDS[i - 1][0]}",
                child=link.name if last else f"{joint.name}_{coord}",
                type=joint_type,
                math=self.math,
                axis=axis,
                origin=joint.origin if i == 0 else None,
            )
            if last:
                body_id = self.add_body(
                    body_id,
                    virtual_joint,
                    link.name,
                    link.spatial_inertia(),
                    link.mass,
                    link.com,
                )
            else:
                body_id = self.add_body(
                    body_id, virtual_joint, virtual_joint.child, is_virtual=True
                )
        return body_id

    def add_fixed_body(
        self,
        parent: BodyId,
        joint: Joint,
        name: str,
        inertia: npt.ArrayLike = None,
        mass: float = 0.0,
        com: npt.ArrayLike = None,
    ) -> BodyId:
        """Adds a body through a fixed joint and merges its inertia into the
        movable parent.

        Returns:
            BodyId: the id of the fixed body
        """
        if name in self._ids:
            raise ValueError(f"Body {name} is already in the tree")
        movable = self.movable_parent(parent)
        H = self._H_from_movable_parent(parent) @ joint.homogeneous()
        com = np.zeros(3) if com is None else np.asarray(com, dtype=float)
        self._merge(movable, H, inertia, mass, com)
        self.fixed_bodies.append(
            FixedBody(name=name, movable_parent=movable, H_parent=H, mass=float(mass), com=com)
        )
        body_id = BodyId(BodyKind.FIXED, len(self.fixed_bodies) - 1)
        self._ids[name] = body_id
        return body_id

    def _merge(self, movable: int, H: np.ndarray, inertia, mass: float, com: np.ndarray):
        body = self.bodies[movable]
        if inertia is not None:
            X = self.math.X_from_H(H)
            body.inertia = body.inertia + X.T @ np.asarray(inertia) @ X
        total_mass = body.mass + mass
        if total_mass > 0:
            com_in_parent = H[:3, :3] @ com + H[:3, 3]
            body.com = (body.mass * body.com + mass * com_in_parent) / total_mass
        body.mass = total_mass

    def _H_from_movable_parent(self, parent: BodyId) -> np.ndarray:
        if parent.kind == BodyKind.FIXED:
            return self.fixed_bodies[parent.index].H_parent
        return np.eye(4)

    def body_id(self, name: str) -> BodyId:
        """
        Args:
            name (str): body name

        Returns:
            BodyId: the tagged body index
        """
        if name not in self._ids:
            raise ValueError(f"{name} is not a body of the model {self.name}")
        return self._ids[name]

    def movable_parent(self, body_id: BodyId) -> int:
        """
        Args:
            body_id (BodyId): movable or fixed body

        Returns:
            int: the body itself when movable, the body it is attached to when fixed
        """
        if body_id.kind == BodyKind.FIXED:
            return self.fixed_bodies[body_id.index].movable_parent
        return body_id.index

    def get_list_of_bodies(self) -> Dict[str, BodyId]:
        """
        Returns:
            Dict[str, BodyId]: body name -> tagged id, movable and fixed bodies
        """
        return dict(self._ids)

    def point_in_movable_body(
        self, name: str, point: npt.ArrayLike = None
    ) -> Tuple[int, np.ndarray]:
        """
        Args:
            name (str): body, movable or fixed
            point (npt.ArrayLike, optional): point in the body frame, the origin by default

        Returns:
            index (int): the movable body carrying the point
            point (np.ndarray): the point in the frame of that movable body
        """
        body_id = self.body_id(name)
        point = np.zeros(3) if point is None else np.asarray(point, dtype=float)
        if body_id.kind == BodyKind.FIXED:
            fixed = self.fixed_bodies[body_id.index]
            return fixed.movable_parent, fixed.H_parent[:3, :3] @ point + fixed.H_parent[:3, 3]
        return body_id.index, point

    def body_name(self, body_id: BodyId) -> str:
        if body_id.kind == BodyKind.FIXED:
            return self.fixed_bodies[body_id.index].name
        return self.bodies[body_id.index].name

    @property
    def parents(self) -> List[int]:
        """The parent array, the root has parent -1"""
        return [body.parent for body in self.bodies]

    @property
    def N(self) -> int:
        return len(self.bodies)

    def get_total_mass(self) -> float:
        return sum(body.mass for body in self.bodies)

    def get_body_mass(self, name: str) -> float:
        body_id = self.body_id(name)
        if body_id.kind == BodyKind.FIXED:
            return self.fixed_bodies[body_id.index].mass
        return self.bodies[body_id.index].mass

    def get_body_com(self, name: str) -> np.ndarray:
        body_id = self.body_id(name)
        if body_id.kind == BodyKind.FIXED:
            return self.fixed_bodies[body_id.index].com.copy()
        return self.bodies[body_id.index].com.copy()

    def dof_overview(self) -> PrettyTable:
        table = PrettyTable(["Body", "Joint", "Type", "q index", "dof", "Virtual"])
        table.title = "Degrees of freedom"
        for body in self.bodies[1:]:
            table.add_row(
                [body.name, body.joint.name, body.joint.type, body.q_index, body.dof, body.is_virtual]
            )
        return table

    def hierarchy(self) -> PrettyTable:
        table = PrettyTable(["Idx", "Body", "Parent", "Mass"])
        table.title = "Hierarchy"
        for i, body in enumerate(self.bodies):
            parent = self.bodies[body.parent].name if body.parent >= 0 else ""
            table.add_row([i, body.name, parent, body.mass])
        for fixed in self.fixed_bodies:
            table.add_row(["fixed", fixed.name, self.bodies[fixed.movable_parent].name, fixed.mass])
        return table

    @staticmethod
    def build(factory: ModelFactory, gravity: npt.ArrayLike = None) -> "RigidBodyTree":
        """generates the rigid body tree from the links-joints factory

        Args:
            factory (ModelFactory): the factory that generates the links and the joints
            gravity (npt.ArrayLike): gravity vector, defaults to [0, 0, -9.81]

        Returns:
            RigidBodyTree: the tree describing the robot
        """
        tree = Tree.build_tree(links=factory.get_links(), joints=factory.get_joints())
        rbt = RigidBodyTree(factory.name, gravity)
        rbt.set_root(tree.root)

        for node in list(tree)[1:]:
            link, joint, parent_link = node.get_elements()
            parent = rbt.body_id(parent_link.name)
            if joint.type == "fixed":
                rbt.add_fixed_body(
                    parent, joint, link.name, link.spatial_inertia(), link.mass, link.com
                )
            elif joint.type == "floating":
                rbt.add_floating_base(parent, joint, link)
            else:
                # intermediate bodies of a chain of zero effort joints
                is_virtual = joint.is_virtual_base and any(
                    arc.is_virtual_base for arc in node.arcs
                )
                rbt.add_body(
                    parent,
                    joint,
                    link.name,
                    link.spatial_inertia(),
                    link.mass,
                    link.com,
                    is_virtual,
                )
        logger.debug(rbt.dof_overview())
        return rbt
