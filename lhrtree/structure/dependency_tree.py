from __future__ import annotations

from typing import List, Optional, Sequence

from lhrtree import ROOT_ID
from lhrtree.structure.deprel import Deprel
from lhrtree.utility.alg import istree, walk_to_root


class CycleDetectedError(Exception):
    def __init__(self, dependent: int, governor: int):
        super().__init__(f'The arc {dependent} -> {governor} would close a cycle.')
        self.dependent = dependent
        self.governor = governor


class DependencyTree:
    """
    The heads, deprels and scores of the tokens of a sentence.

    Every per-token field is a list indexed by the token id, so ids must be ``0..n-1``.
    A token without head is attached to the virtual root.
    """

    def __init__(self, element_ids: Sequence[int]):
        element_ids = list(element_ids)
        if element_ids != list(range(len(element_ids))):
            raise ValueError(f'Token ids must be contiguous and start from 0, got {element_ids}.')

        self.elements = tuple(element_ids)
        n = len(element_ids)
        self._heads: List[Optional[int]] = [None] * n
        self._deprels: List[Optional[Deprel]] = [None] * n
        self._pos: List[Optional[str]] = [None] * n
        self._attachment_scores: List[Optional[float]] = [None] * n
        self._deprel_scores: List[Optional[float]] = [None] * n

    def _check_id(self, token_id: int):
        if not 0 <= token_id < len(self._heads):
            raise ValueError(f'Unknown token id {token_id}.')

    def set_arc(self,
                dependent: int,
                governor: int,
                deprel: Optional[Deprel] = None,
                score: Optional[float] = None,
                allow_cycle: bool = False):
        if governor == ROOT_ID:
            self.set_attachment_score(dependent, score)
            if deprel is not None:
                self._deprels[dependent] = deprel
            return

        self._check_id(dependent)
        self._check_id(governor)
        if dependent == governor:
            raise ValueError(f'Self loop on token {dependent}.')
        if not allow_cycle and walk_to_root(self._heads, governor, dependent):
            raise CycleDetectedError(dependent, governor)

        self._heads[dependent] = governor
        self._attachment_scores[dependent] = score
        if deprel is not None:
            self._deprels[dependent] = deprel

    def set_attachment_score(self, dependent: int, score: Optional[float]):
        """Attach ``dependent`` to the root, recording the score of the root attachment."""
        self._check_id(dependent)
        self._heads[dependent] = None
        self._attachment_scores[dependent] = score

    def set_deprel(self, dependent: int, deprel: Optional[Deprel], score: Optional[float] = None):
        self._check_id(dependent)
        self._deprels[dependent] = deprel
        self._deprel_scores[dependent] = score

    def set_pos(self, dependent: int, pos: Optional[str]):
        self._check_id(dependent)
        self._pos[dependent] = pos

    def get_head(self, token_id: int) -> Optional[int]:
        return self._heads[token_id]

    def get_deprel(self, token_id: int) -> Optional[Deprel]:
        return self._deprels[token_id]

    def get_pos(self, token_id: int) -> Optional[str]:
        return self._pos[token_id]

    def get_attachment_score(self, token_id: int) -> Optional[float]:
        return self._attachment_scores[token_id]

    def get_deprel_score(self, token_id: int) -> Optional[float]:
        return self._deprel_scores[token_id]

    def get_position(self, token_id: int) -> int:
        self._check_id(token_id)
        return token_id

    @property
    def size(self) -> int:
        return len(self.elements)

    def __len__(self):
        return len(self.elements)

    @property
    def heads(self) -> List[Optional[int]]:
        return list(self._heads)

    @property
    def deprels(self) -> List[Optional[Deprel]]:
        return list(self._deprels)

    @property
    def roots(self) -> List[int]:
        return [i for i, head in enumerate(self._heads) if head is None]

    def has_single_root(self) -> bool:
        return len(self.roots) == 1

    def dependents_of(self, governor: int) -> List[int]:
        return [i for i, head in enumerate(self._heads) if head == governor]

    @property
    def score(self) -> float:
        return sum(s for s in self._attachment_scores if s is not None) \
               + sum(s for s in self._deprel_scores if s is not None)

    def find_cycle(self) -> Optional[List[int]]:
        """One cycle of the tree as the list of its members in head order, or None."""
        done = [False] * len(self._heads)
        for start in self.elements:
            path, on_path = [], {}
            node = start
            while node is not None and not done[node]:
                if node in on_path:
                    return path[on_path[node]:]
                on_path[node] = len(path)
                path.append(node)
                node = self._heads[node]
            for visited in path:
                done[visited] = True
        return None

    def has_cycles(self) -> bool:
        return self.find_cycle() is not None

    def to_head_list(self) -> List[int]:
        """1-based heads with 0 for the root, the CoNLL convention."""
        return [0 if head is None else head + 1 for head in self._heads]

    def is_tree(self, single_root: bool = True) -> bool:
        return istree(self.to_head_list(), multiroot=not single_root)

    def copy(self) -> DependencyTree:
        tree = DependencyTree(self.elements)
        tree._heads = list(self._heads)
        tree._deprels = list(self._deprels)
        tree._pos = list(self._pos)
        tree._attachment_scores = list(self._attachment_scores)
        tree._deprel_scores = list(self._deprel_scores)
        return tree

    def __repr__(self):
        arcs = ', '.join(f'{i}<-{"ROOT" if h is None else h}' for i, h in enumerate(self._heads))
        return f'DependencyTree({arcs})'
