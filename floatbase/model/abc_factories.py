import abc
import dataclasses
from typing import List

import numpy.typing as npt

from floatbase.core.spatial_math import SpatialMath


@dataclasses.dataclass(frozen=True)
class Pose:
    """Pose class"""

    xyz: npt.ArrayLike
    rpy: npt.ArrayLike

    @staticmethod
    def build(xyz: npt.ArrayLike, rpy: npt.ArrayLike, math: SpatialMath) -> "Pose":
        xyz = math.asarray(xyz)
        rpy = math.asarray(rpy)
        return Pose(xyz, rpy)

    @staticmethod
    def zero(math: SpatialMath) -> "Pose":
        return Pose.build([0, 0, 0], [0, 0, 0], math)


@dataclasses.dataclass(frozen=True)
class Inertia:
    matrix: npt.ArrayLike

    @staticmethod
    def build(
        ixx: float,
        ixy: float,
        ixz: float,
        iyy: float,
        iyz: float,
        izz: float,
        math: SpatialMath,
    ) -> "Inertia":
        matrix = math.asarray(
            [
                [ixx, ixy, ixz],
                [ixy, iyy, iyz],
                [ixz, iyz, izz],
            ]
        )
        return Inertia(matrix)

    @staticmethod
    def zero(math: SpatialMath) -> "Inertia":
        return Inertia.build(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, math)


@dataclasses.dataclass(frozen=True)
class Limits:
    """Limits class"""

    lower: float
    upper: float
    effort: float
    velocity: float


@dataclasses.dataclass(frozen=True)
class Inertial:
    """Inertial description"""

    mass: float
    inertia: Inertia
    origin: Pose

    @staticmethod
    def zero(math: SpatialMath) -> "Inertial":
        return Inertial(mass=0.0, inertia=Inertia.zero(math), origin=Pose.zero(math))


@dataclasses.dataclass
class Joint(abc.ABC):
    """Base Joint class. You need to fill at least these fields"""

    math: SpatialMath
    name: str
    parent: str
    child: str
    type: str
    axis: npt.ArrayLike
    origin: Pose
    limit: Limits
    idx: int

    @property
    def dof(self) -> int:
        """Number of coordinates the joint adds to the generalized vector"""
        if self.type == "fixed":
            return 0
        if self.type == "floating":
            return 6
        if self.type == "translation":
            return 3
        return 1

    @property
    def is_virtual_base(self) -> bool:
        """True for unactuated joints standing in for a base dof (zero effort limit)"""
        if self.type == "floating":
            return True
        return (
            self.type in ["revolute", "continuous", "prismatic"]
            and self.limit.effort == 0
        )

    @abc.abstractmethod
    def spatial_transform(self, q: npt.ArrayLike) -> npt.ArrayLike:
        """
        Args:
            q (npt.ArrayLike): joint motion

        Returns:
            npt.ArrayLike: spatial transform of the joint given q
        """
        pass

    @abc.abstractmethod
    def motion_subspace(self) -> npt.ArrayLike:
        """
        Returns:
            npt.ArrayLike: motion subspace of the joint
        """

    @abc.abstractmethod
    def homogeneous(self, q: npt.ArrayLike) -> npt.ArrayLike:
        """
        Args:
            q (npt.ArrayLike): joint value
        Returns:
            npt.ArrayLike: homogeneous transform given the joint value
        """
        pass


@dataclasses.dataclass
class Link(abc.ABC):
    """Base Link class. You need to fill at least these fields"""

    math: SpatialMath
    name: str
    inertial: Inertial

    @abc.abstractmethod
    def spatial_inertia(self) -> npt.ArrayLike:
        """
        Returns:
            npt.ArrayLike: the 6x6 inertia matrix expressed at
                           the origin of the link (with rotation)
        """
        pass


@dataclasses.dataclass
class ModelFactory(abc.ABC):
    """The abstract class of the model factory.

    The model factory is responsible for creating the elements the rigid body
    tree is built from.
    """

    math: SpatialMath
    name: str

    @abc.abstractmethod
    def build_link(self) -> Link:
        pass

    @abc.abstractmethod
    def build_joint(self) -> Joint:
        pass

    @abc.abstractmethod
    def get_links(self) -> List[Link]:
        """
        Returns:
            List[Link]: the list of the links
        """
        pass

    @abc.abstractmethod
    def get_joints(self) -> List[Joint]:
        """
        Returns:
            List[Joint]: the list of the joints
        """
        pass
