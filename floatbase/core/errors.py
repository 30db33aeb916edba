# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.


class DimensionMismatchError(ValueError):
    """Raised when a state vector does not match the dof of the model it is used with"""

    def __init__(self, what: str, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(f"{what} has size {got}, expected {expected}")
