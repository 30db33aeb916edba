import itertools
import logging

import numpy as np
import pytest

from floatbase.core import (
    Coords6d,
    DimensionMismatchError,
    EndEffectorType,
    SystemType,
)
from floatbase.model import FloatingBaseJoint, FloatingBaseSystem

logger = logging.getLogger("floatbase.tests")


@pytest.fixture
def quadruped(quadruped_path) -> FloatingBaseSystem:
    return FloatingBaseSystem.from_urdf(quadruped_path, logger=logger)


@pytest.fixture
def biped(biped_path, biped_description_path) -> FloatingBaseSystem:
    return FloatingBaseSystem.from_urdf(biped_path, biped_description_path, logger=logger)


@pytest.fixture
def arm(arm_path) -> FloatingBaseSystem:
    return FloatingBaseSystem.from_urdf(arm_path, logger=logger)


def test_full_floating_base(quadruped):
    assert quadruped.get_type_of_dynamic_system() == SystemType.FLOATING_BASE
    assert quadruped.is_fully_floating_base()
    assert quadruped.get_floating_base_dof() == 6
    assert quadruped.get_joint_dof() == 12
    assert quadruped.get_system_dof() == 18
    assert quadruped.get_floating_joint_names() == ["floating_base"]
    assert quadruped.get_floating_base_name() == "base_link"
    for coord in Coords6d:
        joint = quadruped.get_floating_base_joint(coord)
        assert joint.active
        assert joint.name == "floating_base"
    assert quadruped.get_floating_base_joint_coordinate(0) == Coords6d.LX
    assert quadruped.get_floating_base_joint_coordinate(3) == Coords6d.AX
    assert quadruped.get_floating_base_joint_coordinate(5) == Coords6d.AZ


def test_actuated_joints(quadruped):
    assert quadruped.get_joint_names()[:3] == ["lf_haa", "lf_hfe", "lf_kfe"]
    assert quadruped.get_joint_id("lf_haa") == 0
    assert quadruped.get_joint_id("rh_kfe") == 11
    assert "floating_base" not in quadruped.get_joints()
    with pytest.raises(ValueError):
        quadruped.get_joint_id("floating_base")


def test_virtual_floating_base(biped):
    assert biped.get_type_of_dynamic_system() == SystemType.VIRTUAL_FLOATING_BASE
    assert biped.is_virtual_floating_base_robot()
    assert not biped.is_fully_floating_base()
    assert biped.get_floating_base_dof() == 3
    assert biped.get_system_dof() == 7
    assert biped.get_floating_base_name() == "trunk"
    assert biped.get_floating_base_joint(Coords6d.LX).id == 0
    assert biped.get_floating_base_joint(Coords6d.LZ).id == 1
    assert biped.get_floating_base_joint(Coords6d.AY).id == 2
    assert biped.get_floating_base_joint(Coords6d.AY).name == "base_pitch"
    assert not biped.get_floating_base_joint(Coords6d.AX).active
    assert biped.get_joint_names() == ["l_hip", "l_knee", "r_hip", "r_knee"]
    with pytest.raises(ValueError):
        biped.get_floating_base_joint_coordinate(5)


def test_fixed_base(arm):
    assert arm.get_type_of_dynamic_system() == SystemType.FIXED_BASE
    assert arm.get_floating_base_dof() == 0
    assert arm.get_system_dof() == 2
    np.testing.assert_array_equal(
        arm.to_generalized_joint_state(np.zeros(6), [0.1, 0.2]), [0.1, 0.2]
    )


def test_full_generalized_state(quadruped):
    base = np.arange(1.0, 7.0)
    joints = np.arange(10.0, 22.0)
    q = quadruped.to_generalized_joint_state(base, joints)
    np.testing.assert_array_equal(q[:3], [4.0, 5.0, 6.0])
    np.testing.assert_array_equal(q[3:6], [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(q[6:], joints)

    base_state, joint_state = quadruped.from_generalized_joint_state(q)
    np.testing.assert_array_equal(base_state, base)
    np.testing.assert_array_equal(joint_state, joints)


def test_virtual_generalized_state(biped):
    base = np.arange(1.0, 7.0)
    joints = np.array([0.1, 0.2, 0.3, 0.4])
    q = biped.to_generalized_joint_state(base, joints)
    np.testing.assert_array_equal(
        q, [base[Coords6d.LX], base[Coords6d.LZ], base[Coords6d.AY], 0.1, 0.2, 0.3, 0.4]
    )

    base_state, joint_state = biped.from_generalized_joint_state(q)
    expected = np.zeros(6)
    for coord in [Coords6d.LX, Coords6d.LZ, Coords6d.AY]:
        expected[coord] = base[coord]
    np.testing.assert_array_equal(base_state, expected)
    np.testing.assert_array_equal(joint_state, joints)


def test_generalized_state_dimension_mismatch(quadruped):
    with pytest.raises(DimensionMismatchError) as error:
        quadruped.to_generalized_joint_state(np.zeros(6), np.zeros(11))
    assert error.value.expected == 12
    assert error.value.got == 11
    with pytest.raises(DimensionMismatchError):
        quadruped.to_generalized_joint_state(np.zeros(3), np.zeros(12))
    with pytest.raises(DimensionMismatchError):
        quadruped.from_generalized_joint_state(np.zeros(17))
    # the error is still a ValueError
    with pytest.raises(ValueError):
        quadruped.from_generalized_joint_state(np.zeros(19))


def test_system_type_follows_the_base(quadruped):
    quadruped.set_floating_base_constraint(Coords6d.AZ)
    assert quadruped.has_floating_base_constraints()
    assert quadruped.is_constrained_floating_base_robot()
    assert quadruped.get_type_of_dynamic_system() == SystemType.CONSTRAINED_FLOATING_BASE
    assert quadruped.get_system_dof() == 18

    quadruped.set_type_of_dynamic_system(SystemType.FIXED_BASE)
    assert quadruped.get_type_of_dynamic_system() == SystemType.FIXED_BASE
    quadruped.set_type_of_dynamic_system(None)
    assert quadruped.get_type_of_dynamic_system() == SystemType.CONSTRAINED_FLOATING_BASE


def test_programmatic_system():
    system = FloatingBaseSystem(full=True, num_joints=2)
    assert system.get_type_of_dynamic_system() == SystemType.FLOATING_BASE
    assert system.get_system_dof() == 8
    q = system.to_generalized_joint_state(np.arange(6.0), [7.0, 8.0])
    np.testing.assert_array_equal(q, [3.0, 4.0, 5.0, 0.0, 1.0, 2.0, 7.0, 8.0])

    system = FloatingBaseSystem()
    assert system.get_type_of_dynamic_system() == SystemType.FIXED_BASE
    system.set_floating_base_joint(FloatingBaseJoint(active=True, id=0, name="slider"), Coords6d.LY)
    system.set_joint_dof(1)
    assert system.get_type_of_dynamic_system() == SystemType.VIRTUAL_FLOATING_BASE
    np.testing.assert_array_equal(
        system.to_generalized_joint_state([0, 0, 0, 0, 2.0, 0], [1.0]), [2.0, 1.0]
    )
    with pytest.raises(ValueError):
        system.get_total_mass()


def test_branches(quadruped):
    assert quadruped.get_branch("lf_foot") == (6, 3)
    assert quadruped.get_branch("rf_shank") == (9, 3)
    assert quadruped.get_branch("rf_thigh") == (9, 2)
    assert quadruped.get_branch("base_link") == (6, 0)

    joint_state = np.zeros(12)
    new_state = quadruped.set_branch_state(joint_state, [1.0, 2.0, 3.0], "rf_foot")
    np.testing.assert_array_equal(new_state[3:6], [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(joint_state, np.zeros(12))
    np.testing.assert_array_equal(
        quadruped.get_branch_state(new_state, "rf_foot"), [1.0, 2.0, 3.0]
    )
    np.testing.assert_array_equal(quadruped.get_branch_state(new_state, "lf_foot"), np.zeros(3))


def test_branch_dimension_mismatch(quadruped):
    with pytest.raises(DimensionMismatchError):
        quadruped.set_branch_state(np.zeros(12), [1.0, 2.0], "lf_foot")
    with pytest.raises(DimensionMismatchError):
        quadruped.set_branch_state(np.zeros(11), [1.0, 2.0, 3.0], "lf_foot")
    with pytest.raises(DimensionMismatchError):
        quadruped.get_branch_state(np.zeros(11), "lf_foot")
    with pytest.raises(ValueError):
        quadruped.get_branch("lf_toe")


def test_branch_of_virtual_and_fixed_base(biped, arm):
    assert biped.get_branch("r_foot") == (5, 2)
    np.testing.assert_array_equal(
        biped.set_branch_state(np.zeros(4), [0.5, -0.5], "r_foot"), [0.0, 0.0, 0.5, -0.5]
    )
    assert arm.get_branch("tool") == (0, 2)
    # bodies inside the virtual base are not supported by the floating link
    with pytest.raises(ValueError):
        biped.get_branch("base_z_link")


def test_all_end_effectors_are_feet(quadruped_path, caplog):
    with caplog.at_level(logging.WARNING):
        system = FloatingBaseSystem.from_urdf(quadruped_path, logger=logger)
    assert "feet" in caplog.text
    assert system.get_end_effectors() == {"lf_foot": 0, "rf_foot": 1, "lh_foot": 2, "rh_foot": 3}
    assert system.get_end_effectors(EndEffectorType.FOOT) == system.get_end_effectors()
    assert system.get_number_of_end_effectors(EndEffectorType.FOOT) == 4
    assert system.get_end_effector_id("rh_foot") == 3


def test_system_description(biped):
    assert biped.get_end_effector_names(EndEffectorType.FOOT) == ["l_foot", "l_hand", "r_foot"]
    assert biped.get_end_effectors() == {"l_foot": 0, "r_foot": 1, "l_hand": 2}
    assert biped.get_end_effectors(EndEffectorType.FOOT) == {
        "l_foot": 0,
        "l_hand": 2,
        "r_foot": 1,
    }
    assert biped.get_number_of_end_effectors() == 3
    np.testing.assert_array_equal(biped.get_default_posture(), [0.3, -0.6, 0.0, 0.0])
    assert biped.get_system_description_file().endswith("planar_biped.yaml")


def test_missing_system_description(biped_path, tmp_path):
    with pytest.raises(FileNotFoundError):
        FloatingBaseSystem.from_urdf(biped_path, tmp_path / "missing.yaml")


def test_joint_limits(biped):
    assert biped.get_lower_limit("l_hip") == -1.5
    assert biped.get_upper_limit("l_knee") == 0.0
    assert biped.get_effort_limit("r_hip") == 50.0
    assert biped.get_velocity_limit("r_knee") == 10.0
    assert set(biped.get_joint_limits()) == {"l_hip", "l_knee", "r_hip", "r_knee"}
    with pytest.raises(ValueError):
        biped.get_joint_limit("base_x")


def test_masses(biped):
    assert biped.get_total_mass() == pytest.approx(10.0 + 2 * (1.0 + 0.5 + 0.1))
    assert biped.get_body_mass("l_foot") == pytest.approx(0.1)
    assert biped.get_body_mass("trunk") == pytest.approx(10.0)
    np.testing.assert_allclose(biped.get_floating_base_com(), np.zeros(3))
    np.testing.assert_allclose(biped.get_body_com("l_thigh"), [0.0, 0.0, -0.15])


def test_system_com(biped):
    mass = biped.get_total_mass()
    leg = 1.0 * -0.35 + 0.5 * -0.65 + 0.1 * -0.8
    com = biped.get_system_com(np.zeros(6), np.zeros(4))
    np.testing.assert_allclose(com, [0.0, 0.0, 2 * leg / mass], atol=1e-12)

    base = np.zeros(6)
    base[Coords6d.LX] = 1.0
    base[Coords6d.LZ] = 0.5
    com = biped.get_system_com(base, np.zeros(4))
    np.testing.assert_allclose(com, [1.0, 0.0, 0.5 + 2 * leg / mass], atol=1e-12)


def test_system_com_rate(biped, arm):
    base_vel = np.zeros(6)
    base_vel[Coords6d.LX] = 1.0
    com_rate = biped.get_system_com_rate(np.zeros(6), np.zeros(4), base_vel, np.zeros(4))
    np.testing.assert_allclose(com_rate, [1.0, 0.0, 0.0], atol=1e-12)

    # spinning the arm around its vertical shoulder axis
    com_rate = arm.get_system_com_rate(np.zeros(6), [0.0, 0.0], np.zeros(6), [1.0, 0.0])
    np.testing.assert_allclose(com_rate, [0.0, 0.5 * 0.15 / 2.5, 0.0], atol=1e-12)


def test_arm_com(arm):
    com = arm.get_system_com(np.zeros(6), [0.0, 0.0])
    expected = (1.0 * 0.55 + 1.0 * 0.8 + 0.5 * 1.0) / 2.5
    np.testing.assert_allclose(com, [0.5 * 0.15 / 2.5, 0.0, expected], atol=1e-12)


def test_gravity(biped_path):
    system = FloatingBaseSystem.from_urdf(biped_path, gravity=[0.0, 0.0, -3.0], logger=logger)
    np.testing.assert_allclose(system.get_gravity_vector(), [0.0, 0.0, -3.0])
    assert system.get_gravity_acceleration() == pytest.approx(3.0)
    np.testing.assert_allclose(system.get_gravity_direction(), [0.0, 0.0, -1.0])


def test_urdf_round_trip(arm_path):
    system = FloatingBaseSystem(logger=logger)
    system.reset_from_urdf_file(arm_path)
    assert system.get_urdf_model() == arm_path.read_text()
    assert system.get_system_description_file() is None
    with pytest.raises(FileNotFoundError):
        system.reset_from_urdf_file(arm_path.parent / "missing.urdf")


def test_log_model_info(quadruped, caplog):
    with caplog.at_level(logging.INFO):
        quadruped.log_model_info()
    assert "Degrees of freedom" in caplog.text
    assert "lf_kfe" in caplog.text
    assert "Hierarchy" in caplog.text


SUBSETS = list(itertools.product([False, True], repeat=len(Coords6d)))


@pytest.mark.parametrize("active", SUBSETS)
def test_system_type_is_a_function_of_the_base(active):
    for constrained in SUBSETS:
        system = FloatingBaseSystem(num_joints=1)
        for coord, is_active, is_constrained in zip(Coords6d, active, constrained):
            if is_active:
                system.set_floating_base_joint(
                    FloatingBaseJoint(active=True, name=coord.name), coord
                )
            if is_constrained:
                system.set_floating_base_constraint(coord)

        num_active = sum(active)
        if num_active == len(Coords6d):
            expected = (
                SystemType.CONSTRAINED_FLOATING_BASE
                if any(constrained)
                else SystemType.FLOATING_BASE
            )
            system_dof = 7
        elif num_active > 0:
            expected = SystemType.VIRTUAL_FLOATING_BASE
            system_dof = num_active + 1
        else:
            expected = SystemType.FIXED_BASE
            system_dof = 1
        assert system.get_type_of_dynamic_system() == expected
        assert system.get_floating_base_dof() == num_active
        assert system.get_system_dof() == system_dof


def test_system_type_does_not_depend_on_the_setting_order():
    orders = itertools.permutations([Coords6d.LZ, Coords6d.AX, Coords6d.AY])
    types = set()
    for order in orders:
        system = FloatingBaseSystem()
        for coord in order:
            system.set_floating_base_joint(FloatingBaseJoint(active=True), coord)
        types.add(system.get_type_of_dynamic_system())
    assert types == {SystemType.VIRTUAL_FLOATING_BASE}


ZERO_AXIS_BASE = """<robot name="zero_axis">
  <link name="world"/>
  <joint name="slider" type="prismatic">
    <parent link="world"/>
    <child link="cart"/>
    <axis xyz="0 0 0"/>
    <limit effort="0" lower="-1" upper="1" velocity="1"/>
  </joint>
  <link name="cart">
    <inertial>
      <mass value="1.0"/>
      <inertia ixx="0.1" ixy="0" ixz="0" iyy="0.1" iyz="0" izz="0.1"/>
    </inertial>
  </link>
</robot>
"""


def assert_unchanged_quadruped(system, tree):
    assert system.get_tree() is tree
    assert system.get_type_of_dynamic_system() == SystemType.FLOATING_BASE
    assert system.get_system_dof() == 18
    assert system.get_joint_dof() == 12
    assert system.get_floating_base_name() == "base_link"
    assert system.get_end_effector_names(EndEffectorType.FOOT) == [
        "lf_foot",
        "rf_foot",
        "lh_foot",
        "rh_foot",
    ]
    assert system.get_joint_id("rh_kfe") == 11


def test_rejected_reset_keeps_the_system(quadruped, arm_path, tmp_path):
    tree = quadruped.get_tree()
    with pytest.raises(ValueError):
        quadruped.reset_from_urdf_model(ZERO_AXIS_BASE)
    assert_unchanged_quadruped(quadruped, tree)

    with pytest.raises(FileNotFoundError):
        quadruped.reset_from_urdf_model(arm_path, tmp_path / "missing.yaml")
    assert_unchanged_quadruped(quadruped, tree)


def test_reset_replaces_the_system(quadruped, biped_path, biped_description_path):
    quadruped.reset_from_urdf_file(biped_path, biped_description_path)
    assert quadruped.get_type_of_dynamic_system() == SystemType.VIRTUAL_FLOATING_BASE
    assert quadruped.get_floating_base_name() == "trunk"
    assert quadruped.get_end_effector_names(EndEffectorType.FOOT) == [
        "l_foot",
        "l_hand",
        "r_foot",
    ]
