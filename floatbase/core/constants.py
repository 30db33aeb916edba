# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from enum import Enum, IntEnum

import numpy as np
import numpy.typing as npt


class Coords3d(IntEnum):
    X = 0
    Y = 1
    Z = 2


class Coords6d(IntEnum):
    """Coordinates of the minimal floating-base vector, angular first"""

    AX = 0
    AY = 1
    AZ = 2
    LX = 3
    LY = 4
    LZ = 5


class SystemType(Enum):
    FIXED_BASE = "FixedBase"
    FLOATING_BASE = "FloatingBase"
    CONSTRAINED_FLOATING_BASE = "ConstrainedFloatingBase"
    VIRTUAL_FLOATING_BASE = "VirtualFloatingBase"


class EndEffectorType(Enum):
    ALL = "all"
    FOOT = "foot"


class JointType(Enum):
    """Joint classes used when enumerating the joints of a robot description"""

    FREE = "free"
    FIXED = "fixed"
    FLOATING = "floating"
    ALL = "all"


class JointMotion(IntEnum):
    """Motion supplied by a floating-base joint.

    The single-axis values are the Coords6d coordinate they move, FULL is a
    six dof floating joint.
    """

    RX = Coords6d.AX
    RY = Coords6d.AY
    RZ = Coords6d.AZ
    TX = Coords6d.LX
    TY = Coords6d.LY
    TZ = Coords6d.LZ
    FULL = 6


def coord3d_to_name(coord: Coords3d) -> str:
    return Coords3d(coord).name


def coord6d_to_name(coord: Coords6d) -> str:
    return Coords6d(coord).name


def angular_part(vector: npt.ArrayLike) -> np.ndarray:
    """
    Args:
        vector (npt.ArrayLike): 6D vector in Coords6d order

    Returns:
        np.ndarray: the angular components
    """
    return np.asarray(vector)[Coords6d.AX : Coords6d.AZ + 1]


def linear_part(vector: npt.ArrayLike) -> np.ndarray:
    """
    Args:
        vector (npt.ArrayLike): 6D vector in Coords6d order

    Returns:
        np.ndarray: the linear components
    """
    return np.asarray(vector)[Coords6d.LX : Coords6d.LZ + 1]


def _skew(x: npt.ArrayLike) -> np.ndarray:
    return -np.cross(np.asarray(x, dtype=float), np.eye(3), axisa=0, axisb=0)


def convert_point_velocity_to_spatial_velocity(
    velocity: npt.ArrayLike, point: npt.ArrayLike
) -> np.ndarray:
    """Moves a velocity given at a point to the frame origin

    Args:
        velocity (npt.ArrayLike): point velocity in Coords6d order
        point (npt.ArrayLike): position of the point

    Returns:
        np.ndarray: spatial velocity in Coords6d order
    """
    spatial_velocity = np.zeros(6)
    spatial_velocity[: Coords6d.LX] = angular_part(velocity)
    spatial_velocity[Coords6d.LX :] = linear_part(velocity) + _skew(
        point
    ) @ angular_part(velocity)
    return spatial_velocity


def convert_point_force_to_spatial_force(
    force: npt.ArrayLike, point: npt.ArrayLike
) -> np.ndarray:
    """Moves a force applied at a point to the frame origin

    Args:
        force (npt.ArrayLike): point force in Coords6d order
        point (npt.ArrayLike): application point

    Returns:
        np.ndarray: spatial force in Coords6d order
    """
    spatial_force = np.zeros(6)
    spatial_force[: Coords6d.LX] = angular_part(force) + _skew(point) @ linear_part(
        force
    )
    spatial_force[Coords6d.LX :] = linear_part(force)
    return spatial_force
