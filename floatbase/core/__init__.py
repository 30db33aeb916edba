# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from .constants import (
    Coords3d,
    Coords6d,
    EndEffectorType,
    JointMotion,
    JointType,
    SystemType,
)
from .errors import DimensionMismatchError
from .rbd_algorithms import RBDAlgorithms
from .spatial_math import SpatialMath
