# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import abc

import numpy.typing as npt


class ArrayLike(abc.ABC):
    """Primitives every backend has to provide"""

    @abc.abstractmethod
    def zeros(*x: int):
        pass

    @abc.abstractmethod
    def eye(x: int):
        pass

    @abc.abstractmethod
    def asarray(x: npt.ArrayLike):
        pass

    @abc.abstractmethod
    def vertcat(*x):
        pass

    @abc.abstractmethod
    def skew(x: npt.ArrayLike):
        pass

    @abc.abstractmethod
    def outer(x: npt.ArrayLike, y: npt.ArrayLike):
        pass

    @abc.abstractmethod
    def solve(A: npt.ArrayLike, b: npt.ArrayLike):
        pass

    @abc.abstractmethod
    def sin(x: float):
        pass

    @abc.abstractmethod
    def cos(x: float):
        pass


class SpatialMath(ArrayLike):
    """Spatial algebra used by the rigid body algorithms.

    Spatial vectors are ordered [linear; angular]. A spatial transform X maps
    motion vectors from the parent frame to the child frame, forces are mapped
    with X^{-T} and inertias are moved back to the parent with X^T I X.
    """

    @classmethod
    def R_from_axis_angle(cls, axis, q):
        cq, sq = cls.cos(q), cls.sin(q)
        return (
            cq * (cls.eye(3) - cls.outer(axis, axis))
            + sq * cls.skew(axis)
            + cls.outer(axis, axis)
        )

    @classmethod
    def Rx(cls, q):
        R = cls.eye(3)
        cq, sq = cls.cos(q), cls.sin(q)
        R[1, 1] = cq
        R[1, 2] = -sq
        R[2, 1] = sq
        R[2, 2] = cq
        return R

    @classmethod
    def Ry(cls, q):
        R = cls.eye(3)
        cq, sq = cls.cos(q), cls.sin(q)
        R[0, 0] = cq
        R[0, 2] = sq
        R[2, 0] = -sq
        R[2, 2] = cq
        return R

    @classmethod
    def Rz(cls, q):
        R = cls.eye(3)
        cq, sq = cls.cos(q), cls.sin(q)
        R[0, 0] = cq
        R[0, 1] = -sq
        R[1, 0] = sq
        R[1, 1] = cq
        return R

    @classmethod
    def R_from_RPY(cls, rpy):
        return cls.Rz(rpy[2]) @ cls.Ry(rpy[1]) @ cls.Rx(rpy[0])

    @classmethod
    def homogeneous(cls, R, p):
        T = cls.eye(4)
        T[:3, :3] = R
        T[0, 3] = p[0]
        T[1, 3] = p[1]
        T[2, 3] = p[2]
        return T

    @classmethod
    def H_from_Pos_RPY(cls, xyz, rpy):
        return cls.homogeneous(cls.R_from_RPY(rpy), xyz)

    @classmethod
    def H_revolute_joint(cls, xyz, rpy, axis, q):
        """
        Args:
            xyz: joint origin in the urdf
            rpy: joint orientation in the urdf
            axis: joint axis in the urdf
            q: joint angle value

        Returns:
            Homogeneous transform from the parent to the child frame
        """
        R = cls.R_from_RPY(rpy) @ cls.R_from_axis_angle(axis, q)
        return cls.homogeneous(R, xyz)

    @classmethod
    def H_prismatic_joint(cls, xyz, rpy, axis, q):
        """
        Args:
            xyz: joint origin in the urdf
            rpy: joint orientation in the urdf
            axis: joint axis in the urdf
            q: joint displacement

        Returns:
            Homogeneous transform from the parent to the child frame
        """
        R = cls.R_from_RPY(rpy)
        return cls.homogeneous(R, xyz + R @ (axis * q))

    @classmethod
    def H_translation_joint(cls, xyz, rpy, q):
        """Three dof translation, q is the displacement in the joint frame"""
        R = cls.R_from_RPY(rpy)
        return cls.homogeneous(R, xyz + R @ q)

    @classmethod
    def X_from_H(cls, T):
        R = T[:3, :3].T
        p = -T[:3, :3].T @ T[:3, 3]
        return cls.spatial_transform(R, p)

    @classmethod
    def X_revolute_joint(cls, xyz, rpy, axis, q):
        # Featherstone, Rigid Body Dynamics Algorithms, table 4.1
        return cls.X_from_H(cls.H_revolute_joint(xyz, rpy, axis, q))

    @classmethod
    def X_prismatic_joint(cls, xyz, rpy, axis, q):
        return cls.X_from_H(cls.H_prismatic_joint(xyz, rpy, axis, q))

    @classmethod
    def X_translation_joint(cls, xyz, rpy, q):
        return cls.X_from_H(cls.H_translation_joint(xyz, rpy, q))

    @classmethod
    def X_fixed_joint(cls, xyz, rpy):
        return cls.X_from_H(cls.H_from_Pos_RPY(xyz, rpy))

    @classmethod
    def spatial_transform(cls, R, p):
        X = cls.zeros(6, 6)
        X[:3, :3] = R
        X[3:, 3:] = R
        X[:3, 3:] = cls.skew(p) @ R
        return X

    @classmethod
    def spatial_force_transform(cls, X):
        """
        Args:
            X: motion spatial transform [[E, B], [0, E]]

        Returns:
            The force transform X^{-T} = [[E, 0], [B, E]]
        """
        X_star = cls.zeros(6, 6)
        X_star[:3, :3] = X[:3, :3]
        X_star[3:, 3:] = X[3:, 3:]
        X_star[3:, :3] = X[:3, 3:]
        return X_star

    @classmethod
    def spatial_inertia(cls, I, mass, c, rpy):
        # Returns the 6x6 inertia matrix expressed at the origin of the link (with rotation)
        IO = cls.zeros(6, 6)
        Sc = cls.skew(c)
        R = cls.R_from_RPY(rpy)
        IO[3:, 3:] = R @ I @ R.T + mass * Sc @ Sc.T
        IO[3:, :3] = mass * Sc
        IO[:3, 3:] = mass * Sc.T
        IO[:3, :3] = cls.eye(3) * mass
        return IO

    @classmethod
    def spatial_skew(cls, v):
        X = cls.zeros(6, 6)
        X[:3, :3] = cls.skew(v[3:])
        X[:3, 3:] = cls.skew(v[:3])
        X[3:, 3:] = cls.skew(v[3:])
        return X

    @classmethod
    def spatial_skew_star(cls, v):
        return -cls.spatial_skew(v).T
