# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import casadi as cs
import numpy as np
import numpy.typing as npt

from floatbase.core.spatial_math import SpatialMath


class SpatialMathCasadi(SpatialMath):
    @staticmethod
    def zeros(*x: int) -> cs.SX:
        return cs.SX.zeros(*x)

    @staticmethod
    def eye(x: int) -> cs.SX:
        return cs.SX.eye(x)

    @staticmethod
    def asarray(x: npt.ArrayLike) -> cs.SX:
        if isinstance(x, (cs.SX, cs.MX)):
            return x
        # numpy arrays must never sit on the left of a casadi operation
        return cs.SX(cs.DM(np.asarray(x, dtype=float)))

    @staticmethod
    def vertcat(*x) -> cs.SX:
        return cs.vertcat(*x)

    @staticmethod
    def skew(x: npt.ArrayLike) -> cs.SX:
        return cs.skew(x)

    @staticmethod
    def outer(x: npt.ArrayLike, y: npt.ArrayLike) -> cs.SX:
        return cs.mtimes(x, y.T)

    @staticmethod
    def solve(A: npt.ArrayLike, b: npt.ArrayLike) -> cs.SX:
        return cs.solve(A, b)

    @staticmethod
    def sin(x: float) -> cs.SX:
        return cs.sin(x)

    @staticmethod
    def cos(x: float) -> cs.SX:
        return cs.cos(x)
