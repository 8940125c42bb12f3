import re
from typing import Optional, Sequence

import torch
from torchmetrics import Metric

from lhrtree.structure.dependency_tree import DependencyTree
from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func("metric")
EPS = 1e-12

PUNCTUATION = re.compile(r"^[-!\"#%&'()*,./:;?@\[\]_{}]+$")


class DependencyParsingMetric(Metric):
    """Attachment scores (UAS/LAS) and complete matches (UCM/LCM) of predicted trees."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_state("correct_arcs", default=torch.tensor(0.0), dist_reduce_fx="sum")
        self.add_state("correct_rels", default=torch.tensor(0.0), dist_reduce_fx="sum")
        self.add_state("total", default=torch.tensor(0.0), dist_reduce_fx="sum")
        self.add_state("n_ucm", default=torch.tensor(0.0), dist_reduce_fx="sum")
        self.add_state("n_lcm", default=torch.tensor(0.0), dist_reduce_fx="sum")
        self.add_state("n", default=torch.tensor(0.0), dist_reduce_fx="sum")
        self.has_label = False

    def update(self, predict, gold, mask):
        arc_preds, arc_golds = predict["arc"], gold["arc"]
        arc_mask = arc_preds.eq(arc_golds) & mask
        arc_mask_seq = arc_mask[mask]

        self.n += len(mask)
        self.total += len(arc_mask_seq)

        lens = mask.sum(1)
        self.n_ucm += arc_mask.sum(1).eq(lens).sum().item()
        self.correct_arcs += arc_mask_seq.sum().item()

        if "rel" in predict:
            self.has_label = True
            rel_preds, rel_golds = predict["rel"], gold["rel"]
            rel_mask = rel_preds.eq(rel_golds) & arc_mask
            rel_mask_seq = rel_mask[mask]

            self.n_lcm += rel_mask.sum(1).eq(lens).sum().item()
            self.correct_rels += rel_mask_seq.sum().item()

    def update_trees(self,
                     trees: Sequence[DependencyTree],
                     gold_heads: Sequence[Sequence[Optional[int]]],
                     gold_rels: Optional[Sequence[Sequence[str]]] = None,
                     forms: Optional[Sequence[Sequence[str]]] = None):
        """
        Same as ``update`` for built trees. Gold heads use the tree convention (None for the
        root). Tokens whose form is punctuation are skipped when ``forms`` is given.
        """
        max_len = max((len(t) for t in trees), default=0)
        shape = (len(trees), max_len)
        pred_arc = torch.full(shape, -2, dtype=torch.long)
        gold_arc = torch.full(shape, -2, dtype=torch.long)
        pred_rel = torch.zeros(shape, dtype=torch.long)
        gold_rel = torch.zeros(shape, dtype=torch.long)
        mask = torch.zeros(shape, dtype=torch.bool)
        rel_index = {}

        for i, (tree, heads) in enumerate(zip(trees, gold_heads)):
            assert len(tree) == len(heads), "The dependency tree and its gold haven't the same size"
            for j in tree.elements:
                pred_arc[i, j] = -1 if tree.get_head(j) is None else tree.get_head(j)
                gold_arc[i, j] = -1 if heads[j] is None else heads[j]
                mask[i, j] = forms is None or not PUNCTUATION.match(forms[i][j])
                if gold_rels is not None:
                    deprel = tree.get_deprel(j)
                    pred_rel[i, j] = rel_index.setdefault(deprel.label if deprel is not None else None, len(rel_index))
                    gold_rel[i, j] = rel_index.setdefault(gold_rels[i][j], len(rel_index))

        predict, gold = {"arc": pred_arc}, {"arc": gold_arc}
        if gold_rels is not None:
            predict["rel"], gold["rel"] = pred_rel, gold_rel
        self.update(predict, gold, mask)

    def compute(self):
        _debug(
            f"sent: {self.n}, token: {self.total}, c_arc: {self.correct_arcs}, c_rel: {self.correct_rels}"
        )
        out = {
            "ucm": 100 * self.n_ucm / (self.n + EPS),
            "uas": 100 * self.correct_arcs / (self.total + EPS),
        }
        if self.has_label:
            out["lcm"] = 100 * self.n_lcm / (self.n + EPS)
            out["las"] = 100 * self.correct_rels / (self.total + EPS)
        return out
