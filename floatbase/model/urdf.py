"""Topology queries on a urdf description.

Every function accepts either a urdf string or an already parsed
``urdf_parser_py.urdf.URDF`` and walks the kinematic tree depth first, children
in document order, so indexes are stable for a given description.
"""

import logging
from typing import Dict, Iterator, Optional, Tuple, Union

import numpy as np
from urdf_parser_py.urdf import URDF

from floatbase.core.constants import JointMotion, JointType
from floatbase.model.abc_factories import Limits
from floatbase.model.std_factories.std_model import urdf_remove_sensors_tags

logger = logging.getLogger(__name__)

FREE_JOINT_TYPES = ["floating", "prismatic", "revolute", "continuous"]


def parse(urdf_model: Union[str, URDF]) -> URDF:
    if isinstance(urdf_model, URDF):
        return urdf_model
    return URDF.from_xml_string(urdf_remove_sensors_tags(urdf_model))


def _depth_first_joints(urdf: URDF) -> Iterator:
    stack = [(None, urdf.get_root())]
    while stack:
        joint_name, link = stack.pop()
        if joint_name is not None:
            yield urdf.joint_map[joint_name]
        for child_joint, child in reversed(urdf.child_map.get(link, [])):
            stack.append((child_joint, child))


def _is_virtual_base_joint(joint) -> bool:
    if joint.type == "floating":
        return True
    return (
        joint.type in ["prismatic", "revolute", "continuous"]
        and joint.limit is not None
        and joint.limit.effort == 0
    )


def get_joint_names(
    urdf_model: Union[str, URDF], type: JointType = JointType.ALL
) -> Dict[str, Optional[int]]:
    """Enumerates the joints of a given class

    Args:
        urdf_model (Union[str, URDF]): the description
        type (JointType): FREE, FIXED, FLOATING or ALL

    Returns:
        Dict[str, Optional[int]]: joint name -> index among the selected joints.
        With ALL the fixed joints are listed with index None.
    """
    urdf = parse(urdf_model)
    joints = {}
    joint_idx = 0
    for joint in _depth_first_joints(urdf):
        if type == JointType.FREE:
            selected = joint.type in FREE_JOINT_TYPES
        elif type == JointType.FIXED:
            selected = joint.type == "fixed"
        elif type == JointType.FLOATING:
            selected = _is_virtual_base_joint(joint)
        else:
            if joint.type == "fixed":
                joints[joint.name] = None
                continue
            selected = True
        if selected:
            joints[joint.name] = joint_idx
            joint_idx += 1
    return joints


def get_end_effectors(urdf_model: Union[str, URDF]) -> Dict[str, int]:
    """A leaf link attached with a fixed joint is an end-effector when a revolute
    or prismatic joint sits between it and the root link.

    Args:
        urdf_model (Union[str, URDF]): the description

    Returns:
        Dict[str, int]: end-effector name -> index
    """
    urdf = parse(urdf_model)
    root_children = urdf.child_map.get(urdf.get_root(), [])
    if not root_children:
        return {}
    root_link = root_children[0][1]

    end_effectors = {}
    for joint_name in get_joint_names(urdf, JointType.FIXED):
        joint = urdf.joint_map[joint_name]
        if urdf.child_map.get(joint.child):
            continue
        parent_link = joint.parent
        while parent_link != root_link and parent_link in urdf.parent_map:
            parent_joint_name, grand_parent = urdf.parent_map[parent_link]
            if urdf.joint_map[parent_joint_name].type in ["prismatic", "revolute"]:
                end_effectors[joint.child] = len(end_effectors)
                break
            parent_link = grand_parent
    return end_effectors


def get_joint_limits(urdf_model: Union[str, URDF]) -> Dict[str, Limits]:
    """
    Args:
        urdf_model (Union[str, URDF]): the description

    Returns:
        Dict[str, Limits]: limits of the actuated joints, virtual floating-base
        joints (zero effort) excluded
    """
    urdf = parse(urdf_model)
    limits = {}
    for joint_name in get_joint_names(urdf, JointType.FREE):
        joint = urdf.joint_map[joint_name]
        if joint.type == "floating" or joint.limit is None:
            continue
        if joint.limit.effort != 0:
            limits[joint_name] = Limits(
                lower=joint.limit.lower,
                upper=joint.limit.upper,
                effort=joint.limit.effort,
                velocity=joint.limit.velocity,
            )
    return limits


def get_joint_axis(
    urdf_model: Union[str, URDF], type: JointType = JointType.ALL
) -> Dict[str, np.ndarray]:
    """
    Args:
        urdf_model (Union[str, URDF]): the description
        type (JointType): class of the joints

    Returns:
        Dict[str, np.ndarray]: joint axis, zero for floating and fixed joints
    """
    urdf = parse(urdf_model)
    axes = {}
    for joint_name in get_joint_names(urdf, type):
        joint = urdf.joint_map[joint_name]
        if joint.type in ["floating", "fixed"]:
            axes[joint_name] = np.zeros(3)
        else:
            axes[joint_name] = np.array(
                [1.0, 0.0, 0.0] if joint.axis is None else joint.axis, dtype=float
            )
    return axes


def _single_axis(joint_name: str, axis: np.ndarray) -> Tuple[int, int]:
    non_zero = np.flatnonzero(axis)
    if len(non_zero) == 0:
        raise ValueError(f"Floating-base joint {joint_name} has a zero axis")
    return int(non_zero[0]), len(non_zero)


def get_floating_base_joint_motion(
    urdf_model: Union[str, URDF],
) -> Dict[str, JointMotion]:
    """Classifies the motion every floating-base joint supplies.

    A floating joint supplies the FULL motion. A zero effort revolute/continuous
    or prismatic joint supplies the rotation or translation along the first
    non-zero component of its axis. The classification is done joint by joint.

    Args:
        urdf_model (Union[str, URDF]): the description

    Returns:
        Dict[str, JointMotion]: floating-base joint name -> motion
    """
    urdf = parse(urdf_model)
    rotations = [JointMotion.RX, JointMotion.RY, JointMotion.RZ]
    translations = [JointMotion.TX, JointMotion.TY, JointMotion.TZ]

    motions = {}
    for joint_name, axis in get_joint_axis(urdf, JointType.FLOATING).items():
        joint = urdf.joint_map[joint_name]
        if joint.type == "floating":
            motions[joint_name] = JointMotion.FULL
            continue
        component, num_components = _single_axis(joint_name, axis)
        if num_components > 1:
            logger.warning(
                f"Floating-base joint {joint_name} has axis {axis.tolist()}, only the {'xyz'[component]} component is used"
            )
        if joint.type == "prismatic":
            motions[joint_name] = translations[component]
        else:
            motions[joint_name] = rotations[component]
    return motions
