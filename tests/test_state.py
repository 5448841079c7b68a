"""
Unit tests for the drone kinematic state.
"""

import math
import pytest
import numpy as np

from drone_detection_mock.noise import NoiseModel
from drone_detection_mock.state import (
    SimulationState, DroneTrack, lane_y,
    SPEED_PER_TICK, OSCILLATION_STEP_RAD, OSCILLATION_AMPLITUDE,
    MIN_Y, MAX_Y, DRONE_SIZE_RANGE, BASE_CONFIDENCE_RANGE
)


@pytest.fixture
def noise():
    """Deterministic noise model."""
    return NoiseModel(np.random.default_rng(42))


class TestSimulationStateInitialize:
    """Test cases for the starting state."""

    def test_two_drone_layout(self, noise):
        """Drones start at the left edge in separate lanes."""
        state = SimulationState.initialize(2, noise)

        assert state.num_drones == 2
        assert state.frame_count == 0

        for i, drone in enumerate(state.drones):
            assert drone.index == i
            assert drone.x == 0.0
            assert drone.y == pytest.approx(lane_y(i))
            assert drone.direction == 1
            assert drone.oscillation_phase == pytest.approx(i * math.pi / 2.0)

        assert state.drones[0].y == pytest.approx(0.3)
        assert state.drones[1].y == pytest.approx(0.7)

    def test_size_and_confidence_ranges(self, noise):
        """Per-drone size and base confidence fall inside their ranges."""
        state = SimulationState.initialize(8, noise)

        for drone in state.drones:
            assert DRONE_SIZE_RANGE[0] <= drone.size <= DRONE_SIZE_RANGE[1]
            assert BASE_CONFIDENCE_RANGE[0] <= drone.base_confidence <= BASE_CONFIDENCE_RANGE[1]

    def test_same_seed_same_state(self):
        """Identical seeds produce identical starting parameters."""
        state_a = SimulationState.initialize(3, NoiseModel.from_seed(7))
        state_b = SimulationState.initialize(3, NoiseModel.from_seed(7))

        assert state_a == state_b

    def test_high_lanes_start_inside_band(self, noise):
        """Drones whose lane lies past the band start at the band edge."""
        state = SimulationState.initialize(4, noise)

        for drone in state.drones:
            assert MIN_Y <= drone.y <= MAX_Y
        assert state.drones[2].y == MAX_Y
        assert state.drones[3].y == MAX_Y

    @pytest.mark.parametrize("num_drones", [0, -1])
    def test_rejects_non_positive_drone_count(self, noise, num_drones):
        with pytest.raises(ValueError, match="must be positive"):
            SimulationState.initialize(num_drones, noise)


class TestSimulationStateAdvance:
    """Test cases for per-tick motion."""

    def test_single_tick_from_start(self, noise):
        """After one tick the first drone has moved one step right."""
        state = SimulationState.initialize(2, noise)
        state.advance()

        assert state.frame_count == 1
        assert state.drones[0].x == pytest.approx(SPEED_PER_TICK)
        assert state.drones[0].x == pytest.approx(0.008)

        drone1 = state.drones[1]
        assert MIN_Y <= drone1.y <= MAX_Y
        assert drone1.y == pytest.approx(0.7 + 0.05 * math.sin(math.pi / 2 + 0.1))
        assert abs(drone1.y - 0.7) <= OSCILLATION_AMPLITUDE + 1e-9

    def test_bounce_at_right_edge(self, noise):
        """Crossing the right edge clamps to 1 and flips direction on the same tick."""
        state = SimulationState.initialize(2, noise)
        state.drones[0].x = 0.997
        state.drones[0].direction = 1

        state.advance()

        assert state.drones[0].x == 1.0
        assert state.drones[0].direction == -1

    def test_bounce_at_left_edge(self, noise):
        state = SimulationState.initialize(1, noise)
        state.drones[0].x = 0.003
        state.drones[0].direction = -1

        state.advance()

        assert state.drones[0].x == 0.0
        assert state.drones[0].direction == 1

    def test_full_sweep_reaches_right_edge(self, noise):
        """Starting from x=0 the drone reaches x=1 and turns around."""
        state = SimulationState.initialize(1, noise)
        drone = state.drones[0]

        ticks = 0
        while drone.direction == 1:
            state.advance()
            ticks += 1
            assert ticks < 200

        assert drone.x == 1.0
        assert ticks in (125, 126)

    def test_bounds_hold_over_many_ticks(self, noise):
        """x stays in [0,1] and y in [0.1,0.9] for every drone and tick."""
        state = SimulationState.initialize(4, noise)

        for _ in range(1000):
            state.advance()
            for drone in state.drones:
                assert 0.0 <= drone.x <= 1.0
                assert MIN_Y <= drone.y <= MAX_Y

        assert state.frame_count == 1000

    def test_high_lanes_are_clamped(self, noise):
        """Lanes beyond the frame band are held at the upper bound."""
        state = SimulationState.initialize(3, noise)
        state.advance()

        # Lane 2 rests at 1.1, well past the band
        assert state.drones[2].y == MAX_Y

    def test_phase_advances_each_tick(self, noise):
        state = SimulationState.initialize(2, noise)
        start_phases = [d.oscillation_phase for d in state.drones]

        for _ in range(5):
            state.advance()

        for start, drone in zip(start_phases, state.drones):
            assert drone.oscillation_phase == pytest.approx(start + 5 * OSCILLATION_STEP_RAD)


class TestDroneTrack:
    """Test cases for a single drone track."""

    def test_advance_moves_left_when_reversed(self):
        drone = DroneTrack(index=0, x=0.5, y=0.3, direction=-1,
                           oscillation_phase=0.0, size=0.1, base_confidence=0.8)
        drone.advance()

        assert drone.x == pytest.approx(0.5 - SPEED_PER_TICK)
        assert drone.direction == -1
        assert drone.y == pytest.approx(0.3 + OSCILLATION_AMPLITUDE * math.sin(OSCILLATION_STEP_RAD))

    def test_size_and_confidence_never_change(self):
        drone = DroneTrack(index=0, x=0.0, y=0.3, direction=1,
                           oscillation_phase=0.0, size=0.12, base_confidence=0.85)
        for _ in range(300):
            drone.advance()

        assert drone.size == 0.12
        assert drone.base_confidence == 0.85
