import dataclasses
import logging
from typing import Optional

import numpy as np

from floatbase.core.constants import Coords3d


@dataclasses.dataclass
class ReducedBodyState:
    """Center of mass and center of pressure state, all in world coordinates"""

    time: float = 0.0
    com_pos: np.ndarray = dataclasses.field(default_factory=lambda: np.zeros(3))
    com_vel: np.ndarray = dataclasses.field(default_factory=lambda: np.zeros(3))
    com_acc: np.ndarray = dataclasses.field(default_factory=lambda: np.zeros(3))
    cop: np.ndarray = dataclasses.field(default_factory=lambda: np.zeros(3))


@dataclasses.dataclass
class CartTableProperties:
    gravity: float = 9.81


@dataclasses.dataclass
class CartTableControlParams:
    """The CoP moves linearly by cop_shift over duration"""

    duration: float = 0.0
    cop_shift: np.ndarray = dataclasses.field(default_factory=lambda: np.zeros(3))


class LinearControlledCartTableModel:
    """Cart-table model of the horizontal CoM motion driven by a linearly
    moving center of pressure. The CoM height above the CoP is constant, so

        x(t) = beta_1 e^(w t) + beta_2 e^(-w t) + cop_T t + cop_0,  w = sqrt(g / h)

    where the coefficients are fixed by the initial state and the control
    parameters.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.properties: Optional[CartTableProperties] = None
        self.initial_state: Optional[ReducedBodyState] = None
        self.params: Optional[CartTableControlParams] = None
        self.height = 0.0
        self.omega = 0.0
        self.beta_1 = np.zeros(2)
        self.beta_2 = np.zeros(2)
        self.cop_T = np.zeros(2)

    def set_model_properties(self, properties: CartTableProperties) -> None:
        self.properties = properties

    def init_response(
        self, state: ReducedBodyState, params: CartTableControlParams
    ) -> None:
        """Computes the coefficients of the response starting from state

        Args:
            state (ReducedBodyState): the initial state
            params (CartTableControlParams): the CoP control parameters
        """
        if self.properties is None:
            self.logger.warning(
                "The cart-table response cannot be initialized before the model properties are set"
            )
            return

        self.initial_state = dataclasses.replace(
            state,
            com_pos=np.array(state.com_pos, dtype=float),
            com_vel=np.array(state.com_vel, dtype=float),
            com_acc=np.array(state.com_acc, dtype=float),
            cop=np.array(state.cop, dtype=float),
        )
        self.params = CartTableControlParams(
            duration=params.duration, cop_shift=np.array(params.cop_shift, dtype=float)
        )

        initial = self.initial_state
        self.height = initial.com_pos[Coords3d.Z] - initial.cop[Coords3d.Z]
        self.omega = np.sqrt(self.properties.gravity / self.height)
        alpha = 2 * self.omega * self.params.duration
        hor_proj = (initial.com_pos - initial.cop)[:2]
        hor_disp = initial.com_vel[:2] * self.params.duration
        cop_shift = self.params.cop_shift[:2]
        self.beta_1 = hor_proj / 2 + (hor_disp - cop_shift) / alpha
        self.beta_2 = hor_proj / 2 - (hor_disp - cop_shift) / alpha
        self.cop_T = cop_shift / self.params.duration

    def compute_response(self, time: float) -> Optional[ReducedBodyState]:
        """
        Args:
            time (float): absolute time

        Returns:
            ReducedBodyState: the state at time, None when the response is not
            initialized or time precedes the initial time
        """
        if self.initial_state is None:
            self.logger.warning(
                "The cart-table response cannot be computed before init_response"
            )
            return None

        initial = self.initial_state
        if time < initial.time:
            return None

        dt = time - initial.time
        beta_exp_1 = self.beta_1 * np.exp(self.omega * dt)
        beta_exp_2 = self.beta_2 * np.exp(-self.omega * dt)

        state = ReducedBodyState(time=time)
        state.com_pos[:2] = beta_exp_1 + beta_exp_2 + self.cop_T * dt + initial.cop[:2]
        state.com_vel[:2] = self.omega * beta_exp_1 - self.omega * beta_exp_2 + self.cop_T
        state.com_acc[:2] = self.omega**2 * (beta_exp_1 + beta_exp_2)

        # no vertical motion
        state.com_pos[Coords3d.Z] = initial.com_pos[Coords3d.Z]

        state.cop = initial.cop + (dt / self.params.duration) * self.params.cop_shift
        return state

    def compute_system_energy(
        self, initial_state: ReducedBodyState, params: CartTableControlParams
    ) -> Optional[np.ndarray]:
        """Integral measure of the horizontal CoM acceleration over the
        control duration, the response is (re)initialized from initial_state

        Returns:
            np.ndarray: the energy per axis, zero along z
        """
        self.init_response(initial_state, params)
        if self.properties is None:
            return None

        duration = self.params.duration
        omega_2 = self.omega**2
        c_1 = (self.beta_1 * omega_2) ** 2
        c_2 = (self.beta_2 * omega_2) ** 2
        c_3 = self.beta_1 * self.beta_2 * omega_2**2

        com_energy = np.zeros(3)
        com_energy[:2] = (
            c_1 * np.exp(2 * self.omega * duration)
            + c_2 * np.exp(-2 * self.omega * duration)
            + c_3
        )
        return com_energy

    def get_pendulum_height(self) -> float:
        return self.height
