import logging

import numpy as np
import pytest

from floatbase.simulation import (
    CartTableControlParams,
    CartTableProperties,
    LinearControlledCartTableModel,
    ReducedBodyState,
)

logger = logging.getLogger("floatbase.tests")


@pytest.fixture
def initial_state() -> ReducedBodyState:
    return ReducedBodyState(
        time=1.0,
        com_pos=np.array([0.1, -0.05, 0.8]),
        com_vel=np.array([0.3, 0.1, 0.0]),
        cop=np.array([0.0, 0.0, 0.0]),
    )


@pytest.fixture
def params() -> CartTableControlParams:
    return CartTableControlParams(duration=0.5, cop_shift=np.array([0.2, 0.05, 0.0]))


@pytest.fixture
def model(initial_state, params) -> LinearControlledCartTableModel:
    model = LinearControlledCartTableModel(logger)
    model.set_model_properties(CartTableProperties(gravity=9.81))
    model.init_response(initial_state, params)
    return model


def test_uninitialized_model(initial_state, params, caplog):
    model = LinearControlledCartTableModel(logger)
    with caplog.at_level(logging.WARNING):
        model.init_response(initial_state, params)
        assert model.compute_response(1.5) is None
        assert model.compute_system_energy(initial_state, params) is None
    assert len(caplog.records) == 3
    assert model.get_pendulum_height() == 0.0


def test_response_before_initial_time(model):
    assert model.compute_response(0.5) is None


def test_pendulum_height(model):
    assert model.get_pendulum_height() == pytest.approx(0.8)
    assert model.omega == pytest.approx(np.sqrt(9.81 / 0.8))


def test_response_starts_at_the_initial_state(model, initial_state):
    state = model.compute_response(initial_state.time)
    assert state.time == initial_state.time
    np.testing.assert_allclose(state.com_pos, initial_state.com_pos, atol=1e-12)
    np.testing.assert_allclose(state.com_vel, initial_state.com_vel, atol=1e-12)
    np.testing.assert_allclose(state.cop, initial_state.cop, atol=1e-12)


def test_cop_reaches_the_shift(model, initial_state, params):
    state = model.compute_response(initial_state.time + params.duration)
    np.testing.assert_allclose(state.cop, initial_state.cop + params.cop_shift)


@pytest.mark.parametrize("dt", [0.1, 0.25, 0.6])
def test_response_follows_the_cart_table_dynamics(model, initial_state, dt):
    state = model.compute_response(initial_state.time + dt)
    omega_2 = 9.81 / model.get_pendulum_height()
    np.testing.assert_allclose(
        state.com_acc[:2], omega_2 * (state.com_pos[:2] - state.cop[:2]), atol=1e-12
    )
    assert state.com_pos[2] == initial_state.com_pos[2]
    assert state.com_vel[2] == 0.0
    assert state.com_acc[2] == 0.0


def test_response_does_not_alias_the_initial_state(model, initial_state):
    state = model.compute_response(initial_state.time + 0.1)
    state.com_pos[0] = 100.0
    np.testing.assert_allclose(
        model.compute_response(initial_state.time).com_pos[0], initial_state.com_pos[0]
    )


def test_system_energy(initial_state, params):
    model = LinearControlledCartTableModel(logger)
    model.set_model_properties(CartTableProperties(gravity=9.81))
    energy = model.compute_system_energy(initial_state, params)

    omega = np.sqrt(9.81 / 0.8)
    alpha = 2 * omega * params.duration
    hor_proj = (initial_state.com_pos - initial_state.cop)[:2]
    hor_disp = initial_state.com_vel[:2] * params.duration
    beta_1 = hor_proj / 2 + (hor_disp - params.cop_shift[:2]) / alpha
    beta_2 = hor_proj / 2 - (hor_disp - params.cop_shift[:2]) / alpha
    expected = (
        (beta_1 * omega**2) ** 2 * np.exp(2 * omega * params.duration)
        + (beta_2 * omega**2) ** 2 * np.exp(-2 * omega * params.duration)
        + beta_1 * beta_2 * omega**4
    )
    np.testing.assert_allclose(energy[:2], expected)
    assert energy[2] == 0.0
    # the response is initialized as a side effect
    assert model.get_pendulum_height() == pytest.approx(0.8)


def test_balanced_system_has_no_energy():
    model = LinearControlledCartTableModel(logger)
    model.set_model_properties(CartTableProperties())
    state = ReducedBodyState(com_pos=np.array([0.2, 0.1, 1.0]), cop=np.array([0.2, 0.1, 0.0]))
    energy = model.compute_system_energy(state, CartTableControlParams(duration=1.0))
    np.testing.assert_allclose(energy, np.zeros(3), atol=1e-15)
