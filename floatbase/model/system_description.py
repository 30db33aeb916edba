import dataclasses
import pathlib
from typing import Dict, List, Optional, Union

import yaml


@dataclasses.dataclass
class SystemDescription:
    """Supplementary robot information read from the ``robot`` namespace of a
    yaml file::

        robot:
          feet: [lf_foot, rf_foot]
          default_pose:
            lf_hfe_joint: 0.75
    """

    feet: Optional[List[str]] = None
    default_pose: Dict[str, float] = dataclasses.field(default_factory=dict)

    @staticmethod
    def from_dict(data: dict) -> "SystemDescription":
        robot = (data or {}).get("robot") or {}
        feet = robot.get("feet")
        return SystemDescription(
            feet=None if feet is None else [str(name) for name in feet],
            default_pose={
                str(name): float(value)
                for name, value in (robot.get("default_pose") or {}).items()
            },
        )

    @staticmethod
    def load(path: Union[str, pathlib.Path]) -> "SystemDescription":
        path = pathlib.Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Error opening file '{path}'")
        with path.open() as f:
            return SystemDescription.from_dict(yaml.safe_load(f))
