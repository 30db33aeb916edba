# Copyright (C) 2021 Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from typing import Dict, List, Tuple, TypeVar

import numpy as np

from floatbase.core.spatial_math import SpatialMath

T = TypeVar("T")


class RBDAlgorithms:
    """Recursive algorithms on a rigid body tree, written once against the
    abstract spatial math so they run numerically and symbolically.

    The tree is the flat, topologically ordered body table of
    floatbase.model.RigidBodyTree. Its constant data (motion subspaces,
    inertias, joint placements) is converted once to the backend types.
    """

    def __init__(self, tree, math: SpatialMath) -> None:
        """
        Args:
            tree (RigidBodyTree): the kinematic tree
            math (SpatialMath): the spatial math backend
        """
        self.tree = tree
        self.math = math
        self._prepare_tree_cache()

    def _prepare_tree_cache(self) -> None:
        self.S: List[T] = [None] * self.tree.N
        self.I: List[T] = [None] * self.tree.N
        self.H_tree: List[T] = [None] * self.tree.N
        self.X_tree: List[T] = [None] * self.tree.N
        self.origin_xyz: List[T] = [None] * self.tree.N
        self.origin_rpy: List[T] = [None] * self.tree.N
        self.axis: List[T] = [None] * self.tree.N
        for i, body in enumerate(self.tree.bodies[1:], start=1):
            joint = body.joint
            self.S[i] = self.math.asarray(joint.motion_subspace())
            self.I[i] = self.math.asarray(body.inertia)
            self.H_tree[i] = self.math.asarray(body.H_tree)
            self.X_tree[i] = self.math.X_from_H(self.H_tree[i])
            self.origin_xyz[i] = self.math.asarray(joint.origin.xyz)
            self.origin_rpy[i] = self.math.asarray(joint.origin.rpy)
            self.axis[i] = self.math.asarray(joint.axis)
        self.g = self.math.asarray(np.concatenate([self.tree.gravity, np.zeros(3)]))

    def _segment(self, x: T, i: int) -> T:
        body = self.tree.bodies[i]
        return x[body.q_index : body.q_index + body.dof]

    def joint_homogeneous(self, i: int, q: T) -> T:
        """
        Args:
            i (int): body index
            q (T): generalized positions

        Returns:
            T: homogeneous transform from the parent body to body i
        """
        body = self.tree.bodies[i]
        joint_type = body.joint.type
        xyz, rpy, axis = self.origin_xyz[i], self.origin_rpy[i], self.axis[i]
        if joint_type in ["revolute", "continuous"]:
            H_J = self.math.H_revolute_joint(xyz, rpy, axis, q[body.q_index])
        elif joint_type == "prismatic":
            H_J = self.math.H_prismatic_joint(xyz, rpy, axis, q[body.q_index])
        elif joint_type == "translation":
            H_J = self.math.H_translation_joint(xyz, rpy, self._segment(q, i))
        else:
            raise ValueError(f"Joint type {joint_type} of body {body.name} is not supported")
        return self.H_tree[i] @ H_J

    def joint_spatial_transform(self, i: int, q: T) -> T:
        """
        Args:
            i (int): body index
            q (T): generalized positions

        Returns:
            T: motion transform from the parent body to body i
        """
        body = self.tree.bodies[i]
        joint_type = body.joint.type
        xyz, rpy, axis = self.origin_xyz[i], self.origin_rpy[i], self.axis[i]
        if joint_type in ["revolute", "continuous"]:
            X_J = self.math.X_revolute_joint(xyz, rpy, axis, q[body.q_index])
        elif joint_type == "prismatic":
            X_J = self.math.X_prismatic_joint(xyz, rpy, axis, q[body.q_index])
        elif joint_type == "translation":
            X_J = self.math.X_translation_joint(xyz, rpy, self._segment(q, i))
        else:
            raise ValueError(f"Joint type {joint_type} of body {body.name} is not supported")
        return X_J @ self.X_tree[i]

    def jcalc(self, i: int, q: T, qd: T) -> Tuple[T, T]:
        """Joint calculation. The joints supported have a constant motion
        subspace, so the velocity-product term of the joint is zero.

        Args:
            i (int): body index
            q (T): generalized positions
            qd (T): generalized velocities

        Returns:
            Tuple[T, T]: the spatial transform from the parent, the joint velocity
        """
        X_lambda = self.joint_spatial_transform(i, q)
        v_J = self.S[i] @ self._segment(qd, i)
        return X_lambda, v_J

    def floating_base_inverse_dynamics(
        self, q: T, qd: T, qdd: T, f_ext: Dict[int, T] = None
    ) -> Tuple[T, T]:
        """Inverse dynamics of a robot with a full six dof floating base, i.e.
        bodies 1 to 5 are virtual and body 6 is the floating link.

        Args:
            q (T): generalized positions [base linear, base angular, joints]
            qd (T): generalized velocities
            qdd (T): generalized accelerations, the base entries are not used
            f_ext (Dict[int, T], optional): external spatial forces [force; moment]
                per body index, expressed in world coordinates

        Returns:
            base_acc (T): the base spatial acceleration [linear; angular] in base coordinates
            tau (T): the joint torques
        """
        i = 1
        is_floating_base = False
        while i < self.tree.N and self.tree.bodies[i].is_virtual:
            children = self.tree.bodies[i].children
            if not children:
                break
            i = children[0]
            if i == 6:
                is_floating_base = True
        if not is_floating_base:
            raise ValueError(
                f"{self.tree.name} has no six dof floating base, the first bodies are not a virtual chain up to body 6"
            )
        return self._inverse_dynamics(6, q, qd, qdd, f_ext, world_referenced=True)

    def floating_base_inverse_dynamics_dof(
        self, base_dof: int, q: T, qd: T, qdd: T, f_ext: Dict[int, T] = None
    ) -> Tuple[T, T]:
        """Inverse dynamics of a robot whose body base_dof is the floating link,
        reached through base_dof single dof virtual joints.

        Args:
            base_dof (int): index of the floating link
            q (T): generalized positions [virtual base, joints]
            qd (T): generalized velocities
            qdd (T): generalized accelerations, the base entries are not used
            f_ext (Dict[int, T], optional): external spatial forces [force; moment]
                per body index, expressed in base coordinates

        Returns:
            base_acc (T): the base spatial acceleration [angular; linear] in base coordinates
            tau (T): the joint torques
        """
        if base_dof < 1 or base_dof >= self.tree.N:
            raise ValueError(f"{base_dof} is not a valid floating-base body")
        base_acc, tau = self._inverse_dynamics(
            base_dof, q, qd, qdd, f_ext, world_referenced=False
        )
        return self.math.vertcat(base_acc[3:], base_acc[:3]), tau

    def _inverse_dynamics(
        self,
        base: int,
        q: T,
        qd: T,
        qdd: T,
        f_ext: Dict[int, T],
        world_referenced: bool,
    ) -> Tuple[T, T]:
        N = self.tree.N
        parents = self.tree.parents
        f_ext = {} if f_ext is None else f_ext

        X_lambda = [None] * N
        X_base = [None] * N
        v = [None] * N
        a = [None] * N
        Ic = [None] * N
        f = [None] * N

        X_base[0] = self.math.eye(6)
        v[0] = self.math.zeros(6)

        # First pass: placement and velocity of the floating link
        for i in range(1, base + 1):
            pi = parents[i]
            X_lambda[i], v_J = self.jcalc(i, q, qd)
            X_base[i] = X_lambda[i] @ X_base[pi]
            v[i] = X_lambda[i] @ v[pi] + v_J

        # fictitious gravity acceleration of the base, in base coordinates
        a[base] = -(X_base[base] @ self.g)
        if not world_referenced:
            X_base[base] = self.math.eye(6)

        Ic[base] = self.I[base]
        f[base] = self.I[base] @ a[base] + self.math.spatial_skew_star(v[base]) @ (
            self.I[base] @ v[base]
        )
        if base in f_ext:
            f[base] = f[base] - self.math.spatial_force_transform(X_base[base]) @ f_ext[base]

        # Second pass: bias forces of the bodies supported by the floating link
        for i in range(base + 1, N):
            pi = parents[i]
            if pi < base:
                raise ValueError(
                    f"Body {self.tree.bodies[i].name} is not supported by the floating link {self.tree.bodies[base].name}"
                )
            X_lambda[i], v_J = self.jcalc(i, q, qd)
            X_base[i] = X_lambda[i] @ X_base[pi]
            v[i] = X_lambda[i] @ v[pi] + v_J
            c = self.math.spatial_skew(v[i]) @ v_J
            a[i] = X_lambda[i] @ a[pi] + c + self.S[i] @ self._segment(qdd, i)
            Ic[i] = self.I[i]
            if self.tree.bodies[i].is_virtual:
                f[i] = self.math.zeros(6)
            else:
                f[i] = self.I[i] @ a[i] + self.math.spatial_skew_star(v[i]) @ (
                    self.I[i] @ v[i]
                )
            if i in f_ext:
                f[i] = f[i] - self.math.spatial_force_transform(X_base[i]) @ f_ext[i]

        # Third pass: composite inertias, base acceleration and torques
        for i in range(N - 1, base, -1):
            pi = parents[i]
            Ic[pi] = Ic[pi] + X_lambda[i].T @ Ic[i] @ X_lambda[i]
            f[pi] = f[pi] + X_lambda[i].T @ f[i]

        a[base] = -self.math.solve(Ic[base], f[base])

        base_q = self.tree.bodies[base].q_index + self.tree.bodies[base].dof
        tau = self.math.zeros(self.tree.q_size - base_q)
        for i in range(base + 1, N):
            pi = parents[i]
            a[i] = X_lambda[i] @ a[pi]
            body = self.tree.bodies[i]
            idx = body.q_index - base_q
            tau[idx : idx + body.dof] = self.S[i].T @ (Ic[i] @ a[i] + f[i])

        return a[base], tau

    def forward_kinematics(self, q: T, qd: T = None) -> Tuple[List[T], List[T]]:
        """
        Args:
            q (T): generalized positions
            qd (T, optional): generalized velocities

        Returns:
            H (List[T]): world homogeneous transform of every movable body
            v (List[T]): spatial velocity of every movable body in body coordinates,
                None when qd is not given
        """
        H, v, _ = self._kinematics(q, qd)
        return H, v

    def _kinematics(
        self, q: T, qd: T = None, qdd: T = None
    ) -> Tuple[List[T], List[T], List[T]]:
        N = self.tree.N
        parents = self.tree.parents
        H = [None] * N
        v = [None] * N
        a = [None] * N
        H[0] = self.math.eye(4)
        v[0] = self.math.zeros(6)
        a[0] = self.math.zeros(6)
        for i in range(1, N):
            pi = parents[i]
            H_lambda = self.joint_homogeneous(i, q)
            H[i] = H[pi] @ H_lambda
            if qd is not None:
                X_lambda = self.math.X_from_H(H_lambda)
                v_J = self.S[i] @ self._segment(qd, i)
                v[i] = X_lambda @ v[pi] + v_J
                if qdd is not None:
                    a[i] = (
                        X_lambda @ a[pi]
                        + self.S[i] @ self._segment(qdd, i)
                        + self.math.spatial_skew(v[i]) @ v_J
                    )
        return (
            H,
            v if qd is not None else None,
            a if qd is not None and qdd is not None else None,
        )

    def _point_transform(self, H: T, p: T) -> T:
        # motion of a body at its origin -> motion at the world point p, world axes
        return self.math.spatial_transform(H[:3, :3], H[:3, 3] - p)

    def _point_in_world(self, H: List[T], body: str, point) -> Tuple[int, T]:
        i, point = self.tree.point_in_movable_body(body, point)
        return i, H[i][:3, :3] @ self.math.asarray(point) + H[i][:3, 3]

    def point_jacobian(self, q: T, body: str, point=None) -> T:
        """
        Args:
            q (T): generalized positions
            body (str): body, movable or fixed
            point (npt.ArrayLike, optional): point in the body frame, the body origin by default

        Returns:
            J (T): the 6 x n jacobian mapping the generalized velocities to the
                velocity [linear; angular] of the point, in world axes
        """
        H, _, _ = self._kinematics(q)
        i, p = self._point_in_world(H, body, point)
        J = self.math.zeros(6, self.tree.q_size)
        # only the joints between the body and the root move the point
        while i != 0:
            b = self.tree.bodies[i]
            J[:, b.q_index : b.q_index + b.dof] = self._point_transform(H[i], p) @ self.S[i]
            i = b.parent
        return J

    def point_velocity(self, q: T, qd: T, body: str, point=None) -> T:
        """
        Args:
            q (T): generalized positions
            qd (T): generalized velocities
            body (str): body, movable or fixed
            point (npt.ArrayLike, optional): point in the body frame, the body origin by default

        Returns:
            T: velocity [linear; angular] of the point in world axes
        """
        H, v, _ = self._kinematics(q, qd)
        i, p = self._point_in_world(H, body, point)
        return self._point_transform(H[i], p) @ v[i]

    def point_acceleration(self, q: T, qd: T, qdd: T, body: str, point=None) -> T:
        """
        Args:
            q (T): generalized positions
            qd (T): generalized velocities
            qdd (T): generalized accelerations
            body (str): body, movable or fixed
            point (npt.ArrayLike, optional): point in the body frame, the body origin by default

        Returns:
            T: classical acceleration [linear; angular] of the point in world axes
        """
        H, v, a = self._kinematics(q, qd, qdd)
        i, p = self._point_in_world(H, body, point)
        X = self._point_transform(H[i], p)
        v_p = X @ v[i]
        a_p = X @ a[i]
        # spatial to classical acceleration
        return self.math.vertcat(
            a_p[:3] + self.math.skew(v_p[3:]) @ v_p[:3], a_p[3:]
        )

    def center_of_mass(self, q: T, qd: T = None) -> Tuple[float, T, T]:
        """
        Args:
            q (T): generalized positions
            qd (T, optional): generalized velocities

        Returns:
            mass (float): total mass
            com (T): center of mass position in world coordinates
            com_rate (T): center of mass velocity, None when qd is not given
        """
        H, v = self.forward_kinematics(q, qd)
        mass = self.tree.get_total_mass()
        com = self.math.zeros(3)
        com_rate = self.math.zeros(3) if qd is not None else None
        # the root carries the mass of the links fixed to it
        for i, body in enumerate(self.tree.bodies):
            if body.mass == 0:
                continue
            c = self.math.asarray(body.com)
            R = H[i][:3, :3]
            com = com + body.mass * (R @ c + H[i][:3, 3])
            if qd is not None:
                point_vel = v[i][:3] + self.math.skew(v[i][3:]) @ c
                com_rate = com_rate + body.mass * (R @ point_vel)
        com = com / mass
        if qd is not None:
            com_rate = com_rate / mass
        return mass, com, com_rate
