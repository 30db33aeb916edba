# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import numpy as np
import numpy.typing as npt
from scipy.spatial.transform import Rotation

from floatbase.core.spatial_math import SpatialMath


class SpatialMathNumpy(SpatialMath):
    @classmethod
    def R_from_axis_angle(cls, axis, q):
        quat = cls.axis_angle_to_quat(axis, q)
        return Rotation.from_quat(quat).as_matrix()

    @classmethod
    def axis_angle_to_quat(cls, axis, q):
        s = np.sin(q / 2)
        x = axis[0] * s
        y = axis[1] * s
        z = axis[2] * s
        w = np.cos(q / 2)
        return np.array([x, y, z, w])

    @classmethod
    def Rx(cls, q):
        return Rotation.from_euler("x", q).as_matrix()

    @classmethod
    def Ry(cls, q):
        return Rotation.from_euler("y", q).as_matrix()

    @classmethod
    def Rz(cls, q):
        return Rotation.from_euler("z", q).as_matrix()

    @classmethod
    def R_from_RPY(cls, rpy):
        return Rotation.from_euler("xyz", rpy).as_matrix()

    @staticmethod
    def zeros(*x: int) -> np.ndarray:
        return np.zeros(x)

    @staticmethod
    def eye(x: int) -> np.ndarray:
        return np.eye(x)

    @staticmethod
    def asarray(x: npt.ArrayLike) -> np.ndarray:
        return np.asarray(x, dtype=float)

    @staticmethod
    def vertcat(*x) -> np.ndarray:
        v = np.vstack(x)
        # scalars are stacked in a column, vectors are concatenated
        if v.shape[1] > 1:
            v = np.concatenate(x)
        return v

    @staticmethod
    def skew(x: npt.ArrayLike) -> np.ndarray:
        # Retrieving the skew sym matrix using a cross product
        return -np.cross(np.asarray(x, dtype=float), np.eye(3), axisa=0, axisb=0)

    @staticmethod
    def outer(x: npt.ArrayLike, y: npt.ArrayLike) -> np.ndarray:
        return np.outer(x, y)

    @staticmethod
    def solve(A: npt.ArrayLike, b: npt.ArrayLike) -> np.ndarray:
        return np.linalg.solve(A, b)

    @staticmethod
    def sin(x: float) -> float:
        return np.sin(x)

    @staticmethod
    def cos(x: float) -> float:
        return np.cos(x)
