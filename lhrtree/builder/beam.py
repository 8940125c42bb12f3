from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Protocol, Sequence, Set, Tuple, TypeVar

from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func('beam')

V = TypeVar('V')


@dataclass(frozen=True)
class StateElement(Generic[V]):
    id: int  # position of the element
    index: int  # index of ``value`` among the sorted candidates of the position
    value: V


class State(Generic[V]):
    """
    One configuration of the beam: a candidate value for every position.

    ``payload`` holds whatever the strategy builds from the elements (e.g. a dependency tree) and
    is owned by the state.
    """

    def __init__(self, elements: Sequence[StateElement[V]], order: int):
        self.elements: Tuple[StateElement[V], ...] = tuple(elements)
        self.order = order
        self.key: Tuple[int, ...] = tuple(e.index for e in self.elements)
        self.score = float('-inf')
        self.is_valid = False
        self.expanded = False
        self.payload: Any = None

    def rank(self):
        return not self.is_valid, -self.score, self.order

    def __repr__(self):
        return f'State(key={self.key}, score={self.score:.4f}, valid={self.is_valid})'


class StateStrategy(Protocol[V]):
    def score(self, state: State[V]) -> float:
        ...

    def is_valid(self, state: State[V]) -> bool:
        ...


class BeamManager(Generic[V]):
    r"""
    Beam search over the combinations of per-position candidate values.

    The search starts from the greedy state (the best value at every position). At every
    iteration each state of the beam that has not been expanded yet forks: a fork replaces the
    value of one position with the next-best value not tried yet for that combination. Forks are
    generated in order of the score they lose, at most ``max_fork_size`` per state, and a
    combination of indices is never built twice. The beam keeps the ``max_beam_size`` best states
    ranked by (validity, score, creation order).

    Args:
        values_map: for each position, its candidate values sorted by descending ``score``.
        strategy: scores states and tells whether they are valid.
        max_beam_size: the max number of parallel states in the beam.
        max_fork_size: the max number of forks generated from a state.
        max_iterations: the max number of expansion rounds.
    """

    def __init__(self,
                 values_map: Sequence[Sequence[V]],
                 strategy: StateStrategy[V],
                 max_beam_size: int = 10,
                 max_fork_size: int = 5,
                 max_iterations: int = 10):
        assert max_beam_size > 0 and max_fork_size > 0 and max_iterations >= 0, \
            f'{max_beam_size=}, {max_fork_size=}, {max_iterations=}'
        if any(len(values) == 0 for values in values_map):
            raise ValueError('Every position needs at least one candidate value.')

        self.values_map: List[Tuple[V, ...]] = [tuple(values) for values in values_map]
        self.strategy = strategy
        self.max_beam_size = max_beam_size
        self.max_fork_size = max_fork_size
        self.max_iterations = max_iterations

        self.beam: List[State[V]] = []
        self.n_built = 0
        self.n_iterations = 0
        self._visited: Set[Tuple[int, ...]] = set()
        self._best: Optional[State[V]] = None
        self._best_valid: Optional[State[V]] = None

    def find_best_configuration(self, only_valid: bool = True) -> Optional[State[V]]:
        """
        Run the search.

        Returns:
            The best valid state built during the search, or None if no state is valid. With
            ``only_valid=False`` the best state regardless of its validity.
        """
        self._reset()
        self.beam = [self._build_state(tuple(0 for _ in self.values_map))]

        while self.n_iterations < self.max_iterations and self._update_beam():
            self.n_iterations += 1

        _debug(f'beam search: {self.n_built} states, {self.n_iterations} iterations, '
               f'best valid: {self._best_valid}')
        return self._best_valid if only_valid else self._best

    @property
    def best(self) -> Optional[State[V]]:
        """The best state of the last search, valid or not."""
        return self._best

    def _reset(self):
        self.beam = []
        self.n_built = 0
        self.n_iterations = 0
        self._visited = set()
        self._best = None
        self._best_valid = None

    def _update_beam(self) -> bool:
        pending = [state for state in self.beam if not state.expanded]
        if not pending:
            return False

        forked = []
        for state in pending:
            state.expanded = True
            forked.extend(self._build_state(key) for key in self._fork_keys(state))

        self.beam = sorted(self.beam + forked, key=State.rank)[:self.max_beam_size]
        return True

    def _fork_keys(self, state: State[V]) -> List[Tuple[int, ...]]:
        candidates = []
        for element in state.elements:
            values = self.values_map[element.id]
            index = element.index + 1
            while index < len(values) and self._replace(state.key, element.id, index) in self._visited:
                index += 1
            if index < len(values):
                candidates.append((element.value.score - values[index].score, element.id, index))

        # the smallest loss first, then position order
        candidates.sort(key=lambda c: (c[0], c[1]))
        return [self._replace(state.key, position, index)
                for _, position, index in candidates[:self.max_fork_size]]

    @staticmethod
    def _replace(key: Tuple[int, ...], position: int, index: int) -> Tuple[int, ...]:
        return key[:position] + (index,) + key[position + 1:]

    def _build_state(self, key: Tuple[int, ...]) -> State[V]:
        state = State([StateElement(position, index, self.values_map[position][index])
                       for position, index in enumerate(key)],
                      order=self.n_built)
        self.n_built += 1
        self._visited.add(key)

        state.is_valid = bool(self.strategy.is_valid(state))
        state.score = float(self.strategy.score(state))

        if self._best is None or state.rank() < self._best.rank():
            self._best = state
        if state.is_valid and (self._best_valid is None or state.score > self._best_valid.score):
            self._best_valid = state
        return state
