from __future__ import annotations

from typing import Collection, Iterable, Mapping, NamedTuple, Optional, Tuple

import numpy as np
import torch

import lhrtree
from lhrtree import ROOT_ID


class Arc(NamedTuple):
    governor_id: int
    score: float


class ArcScores:
    """
    The scored candidate heads of every token of a sentence, as produced by an arc scorer.

    Scores are kept in a ``[n, n + 1]`` array indexed by dependent id and by governor id + 1, so
    that column 0 holds the root attachment ("top") scores. A boolean mask of the same shape marks
    the arcs the scorer actually proposed. The object is read-only once built and can be shared
    by any number of tree states.

    Args:
        heads: dependent id -> iterable of ``(governor_id, score)``. The root is ``ROOT_ID``.
    """

    def __init__(self, heads: Mapping[int, Iterable[Tuple[int, float]]]):
        n = len(heads)
        if sorted(heads.keys()) != list(range(n)):
            raise ValueError(f'Token ids must be contiguous and start from 0, got {sorted(heads.keys())}.')

        self.size = n
        self._scores = np.zeros((n, n + 1), dtype=np.float64)
        self._mask = np.zeros((n, n + 1), dtype=bool)

        for dep, arcs in heads.items():
            for gov, score in arcs:
                if gov != ROOT_ID and not 0 <= gov < n:
                    raise ValueError(f'Invalid governor {gov} for token {dep}.')
                if gov == dep:
                    raise ValueError(f'Self loop on token {dep}.')
                self._scores[dep, gov + 1] = score
                self._mask[dep, gov + 1] = True
            if not self._mask[dep].any():
                raise ValueError(f'Token {dep} has no candidate head.')

        self._scores.setflags(write=False)
        self._mask.setflags(write=False)
        self._sorted = [self._sort(dep) for dep in range(n)]

    @classmethod
    def from_matrix(cls, scores, length: Optional[int] = None) -> ArcScores:
        """
        Build from a ``[seq_len, seq_len]`` matrix in the root-at-0 convention of the arc scorers:
        ``scores[d, h]`` is the score of token ``d - 1`` attaching to ``h - 1`` (``h == 0`` is the
        root). Row 0, self loops and entries at or below ``-INF`` are ignored.
        """
        if isinstance(scores, torch.Tensor):
            scores = scores.detach().float().cpu().numpy()
        scores = np.asarray(scores, dtype=np.float64)
        length = scores.shape[0] - 1 if length is None else length
        assert scores.shape[0] > length and scores.shape[1] > length, f'{scores.shape=}, {length=}'

        heads = {}
        for d in range(1, length + 1):
            heads[d - 1] = [(h - 1, float(scores[d, h]))
                            for h in range(length + 1)
                            if h != d and np.isfinite(scores[d, h]) and scores[d, h] > -lhrtree.INF]
        return cls(heads)

    def _sort(self, dep: int) -> Tuple[Arc, ...]:
        columns = np.flatnonzero(self._mask[dep])
        # descending score, then ascending governor id
        order = np.lexsort((columns, -self._scores[dep, columns]))
        return tuple(Arc(int(c) - 1, float(self._scores[dep, c])) for c in columns[order])

    def get_sorted_heads(self, token_id: int) -> Tuple[Arc, ...]:
        return self._sorted[token_id]

    def find_highest_scoring_head(self, dependent_id: int, except_ids: Collection[int] = ()) -> Optional[Arc]:
        for arc in self._sorted[dependent_id]:
            if arc.governor_id not in except_ids:
                return arc
        return None

    def find_highest_scoring_top(self) -> Optional[Tuple[int, float]]:
        candidates = self._mask[:, 0]
        if not candidates.any():
            return None
        top_scores = np.where(candidates, self._scores[:, 0], -np.inf)
        top = int(np.argmax(top_scores))
        return top, float(top_scores[top])

    def root_score(self, token_id: int) -> Optional[float]:
        return self.score(token_id, ROOT_ID)

    def score(self, dependent_id: int, governor_id: int) -> Optional[float]:
        if not self._mask[dependent_id, governor_id + 1]:
            return None
        return float(self._scores[dependent_id, governor_id + 1])

    def __len__(self):
        return self.size

    def __repr__(self):
        return f'ArcScores(size={self.size}, arcs={int(self._mask.sum())})'
