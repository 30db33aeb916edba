# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import casadi as cs

from floatbase.casadi.spatial_math_casadi import SpatialMathCasadi
from floatbase.core.constants import SystemType
from floatbase.core.rbd_algorithms import RBDAlgorithms
from floatbase.model.floating_base_system import FloatingBaseSystem
from floatbase.model.rigid_body_tree import BodyKind


class FloatingBaseDynamics:
    """This is a small class that retrieves the floating-base quantities of a
    FloatingBaseSystem represented in a symbolic fashion using CasADi.
    The functions take generalized coordinates.
    """

    def __init__(
        self,
        system: FloatingBaseSystem,
        f_opts: dict = dict(jit=False, jit_options=dict(flags="-Ofast")),
    ) -> None:
        """
        Args:
            system (FloatingBaseSystem): the floating-base system
            f_opts (dict, optional): options of the generated casadi functions
        """
        self.system = system
        self.rbdalgos = RBDAlgorithms(system.get_tree(), SpatialMathCasadi)
        self.NDoF = system.get_system_dof()
        self.f_opts = f_opts

    def inverse_dynamics_fun(self) -> cs.Function:
        """Returns the floating-base inverse dynamics function

        Returns:
            base_acc, tau (casADi function): base spatial acceleration in Coords6d order and joint torques
        """
        q = cs.SX.sym("q", self.NDoF)
        qd = cs.SX.sym("qd", self.NDoF)
        qdd = cs.SX.sym("qdd", self.NDoF)
        system_type = self.system.get_type_of_dynamic_system()
        if system_type in [SystemType.FLOATING_BASE, SystemType.CONSTRAINED_FLOATING_BASE]:
            base_acc, tau = self.rbdalgos.floating_base_inverse_dynamics(q, qd, qdd)
            base_acc = cs.vertcat(base_acc[3:], base_acc[:3])
        elif system_type == SystemType.VIRTUAL_FLOATING_BASE:
            base_acc, tau = self.rbdalgos.floating_base_inverse_dynamics_dof(
                self.system.get_floating_base_dof(), q, qd, qdd
            )
        else:
            raise ValueError(
                "A fixed-base system has no floating-base inverse dynamics, use a fixed-base solver"
            )
        return cs.Function(
            "floating_base_inverse_dynamics",
            [q, qd, qdd],
            [base_acc, tau],
            self.f_opts,
        )

    def CoM_position_fun(self) -> cs.Function:
        """Returns the CoM positon

        Returns:
            com (casADi function): The CoM position
        """
        q = cs.SX.sym("q", self.NDoF)
        _, com, _ = self.rbdalgos.center_of_mass(q)
        return cs.Function("CoM_pos", [q], [com], self.f_opts)

    def CoM_velocity_fun(self) -> cs.Function:
        """Returns the CoM velocity

        Returns:
            com_rate (casADi function): The CoM velocity
        """
        q = cs.SX.sym("q", self.NDoF)
        qd = cs.SX.sym("qd", self.NDoF)
        _, _, com_rate = self.rbdalgos.center_of_mass(q, qd)
        return cs.Function("CoM_vel", [q, qd], [com_rate], self.f_opts)

    def forward_kinematics_fun(self, body: str) -> cs.Function:
        """Computes the forward kinematics relative to the specified body

        Args:
            body (str): The body, movable or fixed, to which the fk will be computed

        Returns:
            H (casADi function): The fk represented as Homogenous transformation matrix
        """
        tree = self.system.get_tree()
        body_id = tree.body_id(body)
        q = cs.SX.sym("q", self.NDoF)
        H, _ = self.rbdalgos.forward_kinematics(q)
        H_body = H[tree.movable_parent(body_id)]
        if body_id.kind == BodyKind.FIXED:
            H_body = H_body @ SpatialMathCasadi.asarray(
                tree.fixed_bodies[body_id.index].H_parent
            )
        return cs.Function("H", [q], [H_body], self.f_opts)

    def point_jacobian_fun(self, body: str, point=None) -> cs.Function:
        """Returns the jacobian of a point of a body

        Args:
            body (str): The body, movable or fixed
            point (npt.ArrayLike, optional): The point in the body frame, the body origin by default

        Returns:
            J (casADi function): The 6 x n point jacobian, rows in Coords6d order, world axes
        """
        q = cs.SX.sym("q", self.NDoF)
        J = self.rbdalgos.point_jacobian(q, body, point)
        return cs.Function("J_point", [q], [cs.vertcat(J[3:, :], J[:3, :])], self.f_opts)

    def point_velocity_fun(self, body: str, point=None) -> cs.Function:
        """Returns the velocity of a point of a body

        Returns:
            v (casADi function): The point velocity in Coords6d order, world axes
        """
        q = cs.SX.sym("q", self.NDoF)
        qd = cs.SX.sym("qd", self.NDoF)
        v = self.rbdalgos.point_velocity(q, qd, body, point)
        return cs.Function("v_point", [q, qd], [cs.vertcat(v[3:], v[:3])], self.f_opts)

    def point_acceleration_fun(self, body: str, point=None) -> cs.Function:
        """Returns the classical acceleration of a point of a body

        Returns:
            a (casADi function): The point acceleration in Coords6d order, world axes
        """
        q = cs.SX.sym("q", self.NDoF)
        qd = cs.SX.sym("qd", self.NDoF)
        qdd = cs.SX.sym("qdd", self.NDoF)
        a = self.rbdalgos.point_acceleration(q, qd, qdd, body, point)
        return cs.Function(
            "a_point", [q, qd, qdd], [cs.vertcat(a[3:], a[:3])], self.f_opts
        )

    def get_total_mass(self) -> float:
        """Returns the total mass of the robot

        Returns:
            mass: The total mass
        """
        return self.system.get_total_mass()
