from .abc_factories import Inertia, Inertial, Joint, Limits, Link, ModelFactory, Pose
from .floating_base_system import FloatingBaseJoint, FloatingBaseSystem
from .rigid_body_tree import BodyId, BodyKind, RigidBodyTree
from .std_factories.std_joint import StdJoint, VirtualJoint
from .std_factories.std_link import StdLink
from .std_factories.std_model import URDFModelFactory
from .system_description import SystemDescription
from .tree import Node, Tree
