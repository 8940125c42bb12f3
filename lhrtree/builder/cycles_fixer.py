from typing import List, Optional, Set

from lhrtree import ROOT_ID
from lhrtree.structure.arc_scores import Arc, ArcScores
from lhrtree.structure.dependency_tree import DependencyTree
from lhrtree.utility.alg import walk_to_root
from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func('cycles_fixer')


class CyclesFixer:
    """
    Break the cycles of a tree built by picking the best head of each token independently.

    Each cycle is broken by moving the member whose best alternative governor (outside the cycle
    and not below it) costs the least score. A cycle whose members have no alternative at all is
    broken by attaching its best root candidate to the root. Every repair removes one cycle without
    creating new ones, so the loop ends after at most one repair per token.
    """

    def __init__(self, tree: DependencyTree, scores: ArcScores):
        self.tree = tree
        self.scores = scores

    def fix_cycles(self) -> int:
        """Returns the number of repairs applied."""
        repairs = 0
        while (cycle := self.tree.find_cycle()) is not None:
            self._break(cycle)
            repairs += 1
        if repairs:
            _debug(f'fixed {repairs} cycle(s)')
        return repairs

    def _break(self, cycle: List[int]):
        members = set(cycle)
        heads = self.tree.heads

        best = None
        for dep in sorted(cycle):
            alternative = self._find_alternative(dep, members, heads)
            if alternative is None:
                continue
            penalty = self._current_score(dep) - alternative.score
            if best is None or penalty < best[0]:
                best = (penalty, dep, alternative)

        if best is not None:
            _, dep, alternative = best
            self.tree.set_arc(dependent=dep, governor=alternative.governor_id, score=alternative.score)
        else:
            dep = min(cycle, key=self._root_rank)
            self.tree.set_attachment_score(dependent=dep, score=self.scores.root_score(dep))

    def _find_alternative(self, dep: int, members: Set[int], heads: List[Optional[int]]) -> Optional[Arc]:
        excluded = members | {ROOT_ID}
        while (arc := self.scores.find_highest_scoring_head(dep, excluded)) is not None:
            # a governor below the cycle would close a new one
            if not walk_to_root(heads, arc.governor_id, dep):
                return arc
            excluded.add(arc.governor_id)
        return None

    def _current_score(self, dep: int) -> float:
        score = self.tree.get_attachment_score(dep)
        if score is None:
            score = self.scores.score(dep, self.tree.get_head(dep))
        return score if score is not None else 0.0

    def _root_rank(self, dep: int):
        score = self.scores.root_score(dep)
        return score is None, -(score or 0.0), dep
