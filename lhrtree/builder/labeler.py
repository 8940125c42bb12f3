from typing import List, Protocol, Sequence

import numpy as np
import torch

from lhrtree.structure.dependency_tree import DependencyTree
from lhrtree.structure.deprel import Deprel, Direction, ScoredDeprel


class DeprelLabeler(Protocol):
    def predict(self, tree: DependencyTree) -> Sequence[Sequence[ScoredDeprel]]:
        """One list of scored deprels per token of the tree, sorted by descending score."""
        ...


class MatrixDeprelLabeler:
    """
    Labeler over the output of a relation scorer.

    Args:
        rel_scores: ``[seq_len, seq_len, n_rels]`` in the root-at-0 convention, i.e.
            ``rel_scores[d, h]`` scores the relations of token ``d - 1`` under head ``h - 1``.
        labels: the relation names, one per score column.
    """

    def __init__(self, rel_scores, labels: Sequence[str]):
        if isinstance(rel_scores, torch.Tensor):
            rel_scores = rel_scores.detach().float().cpu().numpy()
        self.rel_scores = np.asarray(rel_scores, dtype=np.float64)
        assert self.rel_scores.ndim == 3 and self.rel_scores.shape[-1] == len(labels), \
            f'{self.rel_scores.shape=}, {len(labels)=}'
        self.labels = list(labels)

    def predict(self, tree: DependencyTree) -> List[List[ScoredDeprel]]:
        out = []
        for token_id in tree.elements:
            head = tree.get_head(token_id)
            row = self.rel_scores[token_id + 1, 0 if head is None else head + 1]
            probs = np.exp(row - row.max())
            probs /= probs.sum()
            if head is None:
                direction = Direction.ROOT
            else:
                direction = Direction.LEFT if head > token_id else Direction.RIGHT
            order = np.argsort(-probs, kind='stable')
            out.append([ScoredDeprel(Deprel(self.labels[k], direction), float(probs[k])) for k in order])
        return out
