import dataclasses
from typing import Dict, Iterable, List, Tuple, Union

from floatbase.model.abc_factories import Joint, Link


@dataclasses.dataclass
class Node:
    """The node class"""

    name: str
    link: Link
    arcs: List[Joint]
    children: List["Node"]
    parent: Union[Link, None] = None
    parent_arc: Union[Joint, None] = None

    def __hash__(self) -> int:
        return hash(self.name)

    def get_elements(self) -> Tuple[Link, Joint, Link]:
        """returns the node with its parent arc and parent link

        Returns:
            Tuple[Link, Joint, Link]: the node, the parent_arc, the parent_link
        """
        return self.link, self.parent_arc, self.parent


@dataclasses.dataclass
class Tree(Iterable):
    """The directed tree class"""

    graph: Dict[str, Node]
    root: str

    def __post_init__(self):
        self.ordered_nodes_list = self.get_ordered_nodes_list(self.root)

    @staticmethod
    def build_tree(links: List[Link], joints: List[Joint]) -> "Tree":
        """builds the tree from the connectivity of the elements

        Args:
            links (List[Link])
            joints (List[Joint])

        Returns:
            Tree: the directed tree
        """
        nodes: Dict[str, Node] = {
            l.name: Node(name=l.name, link=l, arcs=[], children=[]) for l in links
        }

        for joint in joints:
            if joint.parent not in nodes or joint.child not in nodes:
                raise ValueError(
                    f"Joint {joint.name} connects {joint.parent} and {joint.child}, which are not both links of the model"
                )
            if nodes[joint.child].parent is not None:
                raise ValueError(f"Link {joint.child} has more than one parent")
            nodes[joint.parent].children.append(nodes[joint.child])
            nodes[joint.parent].arcs.append(joint)
            nodes[joint.child].parent = nodes[joint.parent].link
            nodes[joint.child].parent_arc = joint

        root_link = [l for l in nodes if nodes[l].parent is None]
        if len(root_link) != 1:
            raise ValueError("The model has more than one root link")
        return Tree(nodes, root_link[0])

    def get_ordered_nodes_list(self, start: str) -> List[str]:
        """get the depth-first ordered list of the nodes, given the connectivity

        Args:
            start (str): the start node

        Returns:
            List[str]: the ordered list
        """
        ordered_list = []
        stack = [self.graph[start]]
        while stack:
            node = stack.pop()
            ordered_list.append(node.name)
            stack.extend(reversed(node.children))
        return ordered_list

    def __iter__(self) -> Iterable[Node]:
        yield from [self.graph[name] for name in self.ordered_nodes_list]

    def __len__(self) -> int:
        return len(self.ordered_nodes_list)

    def __getitem__(self, key: Union[int, str]) -> Node:
        if isinstance(key, int):
            return self.graph[self.ordered_nodes_list[key]]
        return self.graph[key]
