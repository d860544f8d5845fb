"""
Acquisition Mode State Machine

Three states select where the next reading comes from:

- LIVE: the most recent message from the live feed
- SIMULATION: a freshly generated synthetic reading (initial state)
- REPLAY: the next reading from the replay buffer

Transitions are pure functions of (state, target) returning the new
state plus a declared list of side effects for the caller to run.
No transition is rejected. Re-entering the current mode is a no-op,
except REPLAY, which always clears and reloads the buffer.

Every effective transition bumps a generation counter. A replay
reload carries the generation it was started under, and its result
is discarded if the machine has moved on by the time it resolves.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

logger = logging.getLogger(__name__)


class AcquisitionMode(str, Enum):
    """Source of the next reading."""
    LIVE = "live"
    SIMULATION = "simulation"
    REPLAY = "replay"

    @classmethod
    def parse(cls, value: Union["AcquisitionMode", str]) -> "AcquisitionMode":
        """
        Accept a mode or its name (case-insensitive).

        Raises:
            ValueError: If the name is not a known mode
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown acquisition mode '{value}' (expected one of: {valid})")


class SideEffect(Enum):
    """Work a transition asks the owner to perform."""
    CLEAR_REPLAY = "clear_replay"
    RELOAD_REPLAY = "reload_replay"


@dataclass(frozen=True)
class ModeState:
    mode: AcquisitionMode = AcquisitionMode.SIMULATION
    generation: int = 0


@dataclass(frozen=True)
class Transition:
    state: ModeState
    effects: Tuple[SideEffect, ...] = ()


def transition(state: ModeState, target: AcquisitionMode) -> Transition:
    """
    Compute the result of switching ``state`` to ``target``.

    Args:
        state: Current state
        target: Requested mode

    Returns:
        Transition with the next state and its side effects
    """
    if target is AcquisitionMode.REPLAY:
        return Transition(
            state=ModeState(target, state.generation + 1),
            effects=(SideEffect.CLEAR_REPLAY, SideEffect.RELOAD_REPLAY),
        )
    if target is state.mode:
        return Transition(state=state)
    return Transition(state=ModeState(target, state.generation + 1))


class ModeController:
    """
    Owns the single current ModeState.

    Example:
        modes = ModeController()
        result = modes.set_mode(AcquisitionMode.REPLAY)
        assert SideEffect.RELOAD_REPLAY in result.effects
    """

    def __init__(self, initial: AcquisitionMode = AcquisitionMode.SIMULATION):
        self._state = ModeState(mode=initial)

    @property
    def state(self) -> ModeState:
        return self._state

    @property
    def mode(self) -> AcquisitionMode:
        return self._state.mode

    @property
    def generation(self) -> int:
        return self._state.generation

    def set_mode(self, target: AcquisitionMode) -> Transition:
        result = transition(self._state, target)
        if result.state is not self._state:
            logger.info(f"Switching to {result.state.mode.value} mode (generation {result.state.generation})")
        self._state = result.state
        return result

    def is_current_replay(self, generation: int) -> bool:
        """True if a reload started under ``generation`` may still be applied."""
        return (
            self._state.mode is AcquisitionMode.REPLAY
            and self._state.generation == generation
        )
