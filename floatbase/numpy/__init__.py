# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from .spatial_math_numpy import SpatialMathNumpy
from .computations import FloatingBaseDynamics
