import casadi as cs
import numpy as np
import pytest

from floatbase.casadi import SpatialMathCasadi
from floatbase.core.constants import (
    Coords3d,
    Coords6d,
    convert_point_force_to_spatial_force,
    convert_point_velocity_to_spatial_velocity,
    coord3d_to_name,
    coord6d_to_name,
)
from floatbase.numpy import SpatialMathNumpy

math = SpatialMathNumpy

xyz = np.array([0.1, -0.2, 0.3])
rpy = np.array([0.4, -0.5, 0.6])
axis = np.array([1.0, 2.0, -1.0]) / np.linalg.norm([1.0, 2.0, -1.0])


def SX2DM(x):
    return np.array(cs.evalf(x))


def test_skew():
    a = np.array([1.0, 2.0, 3.0])
    b = np.array([-0.5, 0.3, 2.0])
    np.testing.assert_allclose(math.skew(a) @ b, np.cross(a, b))


def test_rpy_matches_elementary_rotations():
    R = math.Rz(rpy[2]) @ math.Ry(rpy[1]) @ math.Rx(rpy[0])
    np.testing.assert_allclose(math.R_from_RPY(rpy), R, atol=1e-12)


def test_axis_angle():
    R = math.R_from_axis_angle(axis, 0.7)
    np.testing.assert_allclose(R @ axis, axis, atol=1e-12)
    np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-12)
    np.testing.assert_allclose(
        math.R_from_axis_angle(np.array([0.0, 0.0, 1.0]), 0.7), math.Rz(0.7), atol=1e-12
    )


@pytest.mark.parametrize("q", [0.0, 0.3, -1.2])
def test_casadi_matches_numpy(q):
    np.testing.assert_allclose(
        SX2DM(SpatialMathCasadi.R_from_axis_angle(SpatialMathCasadi.asarray(axis), q)),
        math.R_from_axis_angle(axis, q),
        atol=1e-12,
    )
    np.testing.assert_allclose(
        SX2DM(
            SpatialMathCasadi.X_revolute_joint(
                SpatialMathCasadi.asarray(xyz),
                SpatialMathCasadi.asarray(rpy),
                SpatialMathCasadi.asarray(axis),
                q,
            )
        ),
        math.X_revolute_joint(xyz, rpy, axis, q),
        atol=1e-12,
    )


def test_spatial_inertia_casadi_matches_numpy():
    I = np.diag([0.1, 0.2, 0.3])
    np.testing.assert_allclose(
        SX2DM(
            SpatialMathCasadi.spatial_inertia(
                SpatialMathCasadi.asarray(I),
                2.0,
                SpatialMathCasadi.asarray(xyz),
                SpatialMathCasadi.asarray(rpy),
            )
        ),
        math.spatial_inertia(I, 2.0, xyz, rpy),
        atol=1e-12,
    )


def test_prismatic_joint():
    H = math.H_prismatic_joint(xyz, rpy, axis, 0.5)
    np.testing.assert_allclose(H[:3, 3], xyz + math.R_from_RPY(rpy) @ axis * 0.5)
    np.testing.assert_allclose(H[:3, :3], math.R_from_RPY(rpy))


def test_translation_joint():
    q = np.array([0.1, 0.2, 0.3])
    H = math.H_translation_joint(xyz, np.zeros(3), q)
    np.testing.assert_allclose(H[:3, 3], xyz + q)


def test_spatial_transform_composition():
    H1 = math.H_revolute_joint(xyz, rpy, axis, 0.3)
    H2 = math.H_prismatic_joint(-xyz, rpy[::-1], axis, -0.4)
    np.testing.assert_allclose(
        math.X_from_H(H1 @ H2), math.X_from_H(H2) @ math.X_from_H(H1), atol=1e-12
    )


def test_spatial_force_transform():
    X = math.X_revolute_joint(xyz, rpy, axis, 0.3)
    np.testing.assert_allclose(
        math.spatial_force_transform(X), np.linalg.inv(X).T, atol=1e-12
    )


def test_spatial_cross_products():
    v = np.array([0.1, 0.2, 0.3, -0.4, 0.5, 0.6])
    m = np.array([1.0, -1.0, 2.0, 0.5, 0.0, -0.3])
    lin, ang = v[:3], v[3:]
    expected_motion = np.concatenate(
        [np.cross(ang, m[:3]) + np.cross(lin, m[3:]), np.cross(ang, m[3:])]
    )
    np.testing.assert_allclose(math.spatial_skew(v) @ m, expected_motion)
    expected_force = np.concatenate(
        [np.cross(ang, m[:3]), np.cross(lin, m[:3]) + np.cross(ang, m[3:])]
    )
    np.testing.assert_allclose(math.spatial_skew_star(v) @ m, expected_force)


def test_inertia_moves_with_the_frame():
    # a point mass seen from a frame one meter behind it
    I = math.spatial_inertia(np.zeros((3, 3)), 1.0, np.zeros(3), np.zeros(3))
    H = math.H_from_Pos_RPY(np.array([1.0, 0.0, 0.0]), np.zeros(3))
    X = math.X_from_H(H)
    np.testing.assert_allclose(
        X.T @ I @ X,
        math.spatial_inertia(np.zeros((3, 3)), 1.0, np.array([1.0, 0.0, 0.0]), np.zeros(3)),
        atol=1e-12,
    )


def test_point_force_to_spatial_force():
    force = np.zeros(6)
    force[Coords6d.LZ] = 10.0
    spatial_force = convert_point_force_to_spatial_force(force, [1.0, 0.0, 0.0])
    np.testing.assert_allclose(spatial_force, [0.0, -10.0, 0.0, 0.0, 0.0, 10.0])


def test_point_velocity_to_spatial_velocity():
    velocity = np.zeros(6)
    velocity[Coords6d.AZ] = 1.0
    spatial_velocity = convert_point_velocity_to_spatial_velocity(velocity, [1.0, 0.0, 0.0])
    np.testing.assert_allclose(spatial_velocity, [0.0, 0.0, 1.0, 0.0, -1.0, 0.0])


def test_coordinate_names():
    assert coord3d_to_name(Coords3d.Y) == "Y"
    assert coord6d_to_name(Coords6d.LZ) == "LZ"
    assert coord6d_to_name(2) == "AZ"
