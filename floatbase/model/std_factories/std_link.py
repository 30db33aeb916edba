import numpy.typing as npt
import urdf_parser_py.urdf

from floatbase.core.spatial_math import SpatialMath
from floatbase.model.abc_factories import Inertia, Inertial, Link, Pose


class StdLink(Link):
    """Standard Link class"""

    def __init__(self, link: urdf_parser_py.urdf.Link, math: SpatialMath):
        self.math = math
        self.name = link.name
        self.inertial = self._set_inertia(link)

    def _set_inertia(self, link: urdf_parser_py.urdf.Link) -> Inertial:
        """
        Args:
            link (urdf_parser_py.urdf.Link): the urdf link

        Returns:
            Inertial: the inertial description, zero when the link has none
        """
        inertial = link.inertial
        if inertial is None:
            return Inertial.zero(self.math)

        inertia = Inertia.build(
            ixx=inertial.inertia.ixx,
            ixy=inertial.inertia.ixy,
            ixz=inertial.inertia.ixz,
            iyy=inertial.inertia.iyy,
            iyz=inertial.inertia.iyz,
            izz=inertial.inertia.izz,
            math=self.math,
        )
        origin = (
            Pose.zero(self.math)
            if inertial.origin is None
            else Pose.build(inertial.origin.xyz, inertial.origin.rpy, self.math)
        )
        return Inertial(mass=float(inertial.mass), inertia=inertia, origin=origin)

    @property
    def mass(self) -> float:
        return self.inertial.mass

    @property
    def com(self) -> npt.ArrayLike:
        return self.inertial.origin.xyz

    def spatial_inertia(self) -> npt.ArrayLike:
        """
        Returns:
            npt.ArrayLike: the 6x6 inertia matrix expressed at
                           the origin of the link (with rotation)
        """
        return self.math.spatial_inertia(
            self.inertial.inertia.matrix,
            self.inertial.mass,
            self.inertial.origin.xyz,
            self.inertial.origin.rpy,
        )
