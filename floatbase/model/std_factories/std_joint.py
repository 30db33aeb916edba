import math
from typing import Union

import numpy as np
import numpy.typing as npt
import urdf_parser_py.urdf

from floatbase.core.spatial_math import SpatialMath
from floatbase.model.abc_factories import Joint, Limits, Pose


class StdJoint(Joint):
    """Standard Joint class"""

    def __init__(
        self,
        joint: urdf_parser_py.urdf.Joint,
        math: SpatialMath,
        idx: Union[int, None] = None,
    ) -> None:
        self.math = math
        self.name = joint.name
        self.parent = joint.parent
        self.child = joint.child
        self.type = joint.type
        self.axis = self._set_axis(joint.axis)
        self.origin = self._set_origin(joint.origin)
        self.limit = self._set_limits(joint.limit)
        self.idx = idx

    def _set_axis(self, axis: npt.ArrayLike) -> npt.ArrayLike:
        """
        Args:
            axis (npt.ArrayLike): axis

        Returns:
            npt.ArrayLike: the normalized axis, x when the description has none
        """
        if self.type in ["fixed", "floating"]:
            return self.math.zeros(3)
        axis = np.array([1.0, 0.0, 0.0] if axis is None else axis, dtype=float)
        norm = np.linalg.norm(axis)
        if norm == 0:
            raise ValueError(f"Joint {self.name} of type {self.type} has a zero axis")
        return self.math.asarray(axis / norm)

    def _set_origin(self, origin: Pose) -> Pose:
        """
        Args:
            origin (Pose): origin

        Returns:
            Pose: set the origin
        """
        if origin is None:
            return Pose.zero(self.math)
        return Pose.build(xyz=origin.xyz, rpy=origin.rpy, math=self.math)

    def _set_limits(self, limit: Limits) -> Limits:
        """
        Args:
            limit (Limits): limit

        Returns:
            Limits: set the limits
        """
        joint_lim = math.inf if self.type == "prismatic" else 2 * math.pi
        return Limits(
            lower=-joint_lim if limit is None or limit.lower is None else limit.lower,
            upper=joint_lim if limit is None or limit.upper is None else limit.upper,
            effort=math.inf if limit is None else limit.effort,
            velocity=math.inf if limit is None else limit.velocity,
        )

    def homogeneous(self, q: npt.ArrayLike = None) -> npt.ArrayLike:
        """
        Args:
            q (npt.ArrayLike): joint value

        Returns:
            npt.ArrayLike: the homogenous transform of a joint, given q
        """
        if self.type == "fixed":
            return self.math.H_from_Pos_RPY(self.origin.xyz, self.origin.rpy)
        elif self.type in ["revolute", "continuous"]:
            return self.math.H_revolute_joint(
                self.origin.xyz, self.origin.rpy, self.axis, q
            )
        elif self.type == "prismatic":
            return self.math.H_prismatic_joint(
                self.origin.xyz, self.origin.rpy, self.axis, q
            )
        elif self.type == "translation":
            return self.math.H_translation_joint(self.origin.xyz, self.origin.rpy, q)
        raise ValueError(f"Joint {self.name} of type {self.type} has no transform")

    def spatial_transform(self, q: npt.ArrayLike = None) -> npt.ArrayLike:
        """
        Args:
            q (npt.ArrayLike): joint motion

        Returns:
            npt.ArrayLike: spatial transform of the joint given q
        """
        if self.type == "fixed":
            return self.math.X_fixed_joint(self.origin.xyz, self.origin.rpy)
        elif self.type in ["revolute", "continuous"]:
            return self.math.X_revolute_joint(
                self.origin.xyz, self.origin.rpy, self.axis, q
            )
        elif self.type == "prismatic":
            return self.math.X_prismatic_joint(
                self.origin.xyz, self.origin.rpy, self.axis, q
            )
        elif self.type == "translation":
            return self.math.X_translation_joint(self.origin.xyz, self.origin.rpy, q)
        raise ValueError(f"Joint {self.name} of type {self.type} has no spatial transform")

    def motion_subspace(self) -> npt.ArrayLike:
        """
        Returns:
            npt.ArrayLike: motion subspace of the joint, one column per dof
        """
        if self.type == "fixed":
            return self.math.zeros(6, 1)
        elif self.type in ["revolute", "continuous"]:
            axis = self.axis
            return self.math.vertcat(0, 0, 0, axis[0], axis[1], axis[2])
        elif self.type == "prismatic":
            axis = self.axis
            return self.math.vertcat(axis[0], axis[1], axis[2], 0, 0, 0)
        elif self.type == "translation":
            S = self.math.zeros(6, 3)
            S[:3, :3] = self.math.eye(3)
            return S
        raise ValueError(f"Joint {self.name} of type {self.type} has no motion subspace")


class VirtualJoint(StdJoint):
    """Joint created while building the tree rather than read from a description.

    Used for the single dof bodies a floating joint is expanded into and for
    joint types urdf does not have, as the three dof translation.
    """

    def __init__(
        self,
        name: str,
        parent: str,
        child: str,
        type: str,
        math: SpatialMath,
        axis: npt.ArrayLike = None,
        origin: Pose = None,
        limit: Limits = None,
    ) -> None:
        self.math = math
        self.name = name
        self.parent = parent
        self.child = child
        self.type = type
        self.axis = self._set_axis(axis)
        self.origin = Pose.zero(math) if origin is None else origin
        self.limit = self._set_limits(limit)
        self.idx = None
