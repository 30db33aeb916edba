import pathlib
import xml.etree.ElementTree as ET
from typing import List, Union

import urdf_parser_py.urdf

from floatbase.core.spatial_math import SpatialMath
from floatbase.model.abc_factories import ModelFactory
from floatbase.model.std_factories.std_joint import StdJoint
from floatbase.model.std_factories.std_link import StdLink


def urdf_remove_sensors_tags(xml_string: str) -> str:
    # Parse the XML string
    root = ET.fromstring(xml_string)

    # Find and remove all tags named "sensor" that are child of
    # root node (i.e. robot)
    for sensors_tag in root.findall("sensor"):
        root.remove(sensors_tag)

    return ET.tostring(root, encoding="unicode")


def file_to_xml(path: Union[str, pathlib.Path]) -> str:
    """
    Args:
        path (Union[str, pathlib.Path]): the description file

    Returns:
        str: the content of the file
    """
    path = pathlib.Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Error opening file '{path}'")
    with path.open() as xml_file:
        return xml_file.read()


def get_xml_string(path: Union[str, pathlib.Path]) -> str:
    """Accepts either the path of a urdf file or the urdf string itself

    Args:
        path (Union[str, pathlib.Path]): urdf path or urdf string

    Returns:
        str: the urdf string
    """
    if isinstance(path, pathlib.Path) or not path.lstrip().startswith("<"):
        return file_to_xml(path)

    root = ET.fromstring(path)
    if root.tag != "robot":
        raise ValueError(
            f"Invalid urdf string: {path}. It is neither a path nor a urdf string"
        )
    return path


class URDFModelFactory(ModelFactory):
    """This factory generates robot elements from urdf_parser_py

    Args:
        ModelFactory: the Model factory
    """

    def __init__(self, path: Union[str, pathlib.Path], math: SpatialMath):
        self.math = math
        self.xml_string = get_xml_string(path)

        # urdf_parser_py complains about every sensor tag it finds, they are
        # dropped before parsing
        self.urdf_desc = urdf_parser_py.urdf.URDF.from_xml_string(
            urdf_remove_sensors_tags(self.xml_string)
        )
        self.name = self.urdf_desc.name

    def get_root(self) -> str:
        """
        Returns:
            str: the name of the root link
        """
        return self.urdf_desc.get_root()

    def get_joints(self) -> List[StdJoint]:
        """
        Returns:
            List[StdJoint]: build the list of the joints
        """
        return [self.build_joint(j) for j in self.urdf_desc.joints]

    def get_links(self) -> List[StdLink]:
        """
        Returns:
            List[StdLink]: build the list of the links, frames included
        """
        return [self.build_link(l) for l in self.urdf_desc.links]

    def build_joint(self, joint: urdf_parser_py.urdf.Joint) -> StdJoint:
        """
        Args:
            joint (Joint): the urdf_parser_py joint

        Returns:
            StdJoint: our joint representation
        """
        return StdJoint(joint, self.math)

    def build_link(self, link: urdf_parser_py.urdf.Link) -> StdLink:
        """
        Args:
            link (Link): the urdf_parser_py link

        Returns:
            StdLink: our link representation
        """
        return StdLink(link, self.math)
