# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import logging
from typing import Dict, Optional, Tuple

import numpy as np
import numpy.typing as npt

from floatbase.core.constants import Coords6d, SystemType
from floatbase.core.rbd_algorithms import RBDAlgorithms
from floatbase.numpy.spatial_math_numpy import SpatialMathNumpy


class FloatingBaseDynamics:
    """Numeric floating-base inverse dynamics of a FloatingBaseSystem.

    The base state is in Coords6d order (angular first). External forces are
    spatial forces [force; moment] keyed by body name, movable or fixed. They
    are expressed in world coordinates for a full floating base and in base
    coordinates for a virtual floating base.
    """

    def __init__(self, system, logger: Optional[logging.Logger] = None) -> None:
        """
        Args:
            system (FloatingBaseSystem): the floating-base system
            logger (logging.Logger, optional): receives the diagnostics
        """
        self.system = system
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._rbd: Optional[RBDAlgorithms] = None

    def _algorithms(self) -> Optional[RBDAlgorithms]:
        tree = self.system.tree
        if tree is None:
            return None
        if self._rbd is None or self._rbd.tree is not tree:
            self._rbd = RBDAlgorithms(tree, SpatialMathNumpy)
        return self._rbd

    def _body_forces(
        self, ext_force: Optional[Dict[str, npt.ArrayLike]]
    ) -> Dict[int, np.ndarray]:
        if not ext_force:
            return {}
        tree = self.system.tree
        f_ext = {}
        for name, force in ext_force.items():
            # spatial forces about a common origin add up on the same rigid body
            i = tree.movable_parent(tree.body_id(name))
            f_ext[i] = f_ext.get(i, np.zeros(6)) + np.asarray(force, dtype=float)
        return f_ext

    def compute_floating_base_inverse_dynamics(
        self,
        base_pos: npt.ArrayLike,
        joint_pos: npt.ArrayLike,
        base_vel: npt.ArrayLike,
        joint_vel: npt.ArrayLike,
        joint_acc: npt.ArrayLike,
        ext_force: Optional[Dict[str, npt.ArrayLike]] = None,
    ) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Computes the free base acceleration and the joint torques

        Args:
            base_pos (npt.ArrayLike): base position in Coords6d order
            joint_pos (npt.ArrayLike): joint positions
            base_vel (npt.ArrayLike): base velocity in Coords6d order
            joint_vel (npt.ArrayLike): joint velocities
            joint_acc (npt.ArrayLike): joint accelerations
            ext_force (Dict[str, npt.ArrayLike], optional): external spatial forces per body

        Returns:
            base_acc (np.ndarray): base spatial acceleration in Coords6d order, base coordinates
            tau (np.ndarray): the joint torques
        """
        if self._algorithms() is None:
            self.logger.warning(
                "The floating-base system has no topology, the inverse dynamics is not computed"
            )
            return None
        q = self.system.to_generalized_joint_state(base_pos, joint_pos)
        qd = self.system.to_generalized_joint_state(base_vel, joint_vel)
        qdd = self.system.to_generalized_joint_state(np.zeros(len(Coords6d)), joint_acc)
        return self.compute_generalized_inverse_dynamics(q, qd, qdd, ext_force)

    def compute_generalized_inverse_dynamics(
        self,
        q: npt.ArrayLike,
        qd: npt.ArrayLike,
        qdd: npt.ArrayLike,
        ext_force: Optional[Dict[str, npt.ArrayLike]] = None,
    ) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Same as compute_floating_base_inverse_dynamics on generalized
        coordinates. The base entries of qdd are not used.

        Returns:
            base_acc (np.ndarray): base spatial acceleration in Coords6d order, base coordinates
            tau (np.ndarray): the joint torques
        """
        rbd = self._algorithms()
        if rbd is None:
            self.logger.warning(
                "The floating-base system has no topology, the inverse dynamics is not computed"
            )
            return None

        q = np.asarray(q, dtype=float)
        qd = np.asarray(qd, dtype=float)
        qdd = np.asarray(qdd, dtype=float)
        f_ext = self._body_forces(ext_force)

        system_type = self.system.get_type_of_dynamic_system()
        if system_type in [SystemType.FLOATING_BASE, SystemType.CONSTRAINED_FLOATING_BASE]:
            base_acc, tau = rbd.floating_base_inverse_dynamics(q, qd, qdd, f_ext)
            return np.concatenate([base_acc[3:], base_acc[:3]]), tau
        if system_type == SystemType.VIRTUAL_FLOATING_BASE:
            base_acc, tau = rbd.floating_base_inverse_dynamics_dof(
                self.system.get_floating_base_dof(), q, qd, qdd, f_ext
            )
            return base_acc, tau
        raise ValueError(
            "A fixed-base system has no floating-base inverse dynamics, use a fixed-base solver"
        )

    def get_list_of_bodies(self) -> Optional[dict]:
        """
        Returns:
            Dict[str, BodyId]: body name -> tagged id, movable and fixed bodies
        """
        if self.system.tree is None:
            self.logger.warning("The floating-base system has no topology")
            return None
        return self.system.tree.get_list_of_bodies()

    def compute_point_jacobian(
        self, q: npt.ArrayLike, body: str, point: npt.ArrayLike = None
    ) -> Optional[np.ndarray]:
        """
        Args:
            q (npt.ArrayLike): generalized positions
            body (str): body, movable or fixed
            point (npt.ArrayLike, optional): point in the body frame, the body origin by default

        Returns:
            np.ndarray: the 6 x n point jacobian, rows in Coords6d order, world axes
        """
        rbd = self._algorithms()
        if rbd is None:
            self.logger.warning("The floating-base system has no topology")
            return None
        J = rbd.point_jacobian(np.asarray(q, dtype=float), body, point)
        return np.concatenate([J[3:], J[:3]])

    def compute_point_velocity(
        self,
        q: npt.ArrayLike,
        qd: npt.ArrayLike,
        body: str,
        point: npt.ArrayLike = None,
    ) -> Optional[np.ndarray]:
        """
        Returns:
            np.ndarray: velocity of the point in Coords6d order, world axes
        """
        rbd = self._algorithms()
        if rbd is None:
            self.logger.warning("The floating-base system has no topology")
            return None
        v = rbd.point_velocity(
            np.asarray(q, dtype=float), np.asarray(qd, dtype=float), body, point
        )
        return np.concatenate([v[3:], v[:3]])

    def compute_point_acceleration(
        self,
        q: npt.ArrayLike,
        qd: npt.ArrayLike,
        qdd: npt.ArrayLike,
        body: str,
        point: npt.ArrayLike = None,
    ) -> Optional[np.ndarray]:
        """
        Returns:
            np.ndarray: classical acceleration of the point in Coords6d order, world axes
        """
        rbd = self._algorithms()
        if rbd is None:
            self.logger.warning("The floating-base system has no topology")
            return None
        a = rbd.point_acceleration(
            np.asarray(q, dtype=float),
            np.asarray(qd, dtype=float),
            np.asarray(qdd, dtype=float),
            body,
            point,
        )
        return np.concatenate([a[3:], a[:3]])
