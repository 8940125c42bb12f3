from typing import Optional, Sequence, Tuple, Union

import torch
from omegaconf import DictConfig
from torch import Tensor
from tqdm.auto import tqdm

from lhrtree.builder.labeler import MatrixDeprelLabeler
from lhrtree.builder.tree_builder import BuilderConfig, DependencyTreeBuilder
from lhrtree.structure.arc_scores import ArcScores
from lhrtree.utility.fn import pad
from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func('decode')


def decode_batch(arc_scores: Tensor,
                 mask: Tensor,
                 rel_scores: Optional[Tensor] = None,
                 labels: Optional[Sequence[str]] = None,
                 config: Union[BuilderConfig, dict, DictConfig, None] = None,
                 progress: bool = False) -> Tuple[Tensor, Optional[Tensor]]:
    r"""
    Build the trees of a batch of scored sentences.

    Args:
        arc_scores (~torch.Tensor): ``[batch_size, seq_len, seq_len]``.
            Scores of all dependent-head pairs, position 0 being the root.
        mask (~torch.BoolTensor): ``[batch_size, seq_len]``.
            The mask to avoid parsing over padding tokens.
            The first column serving as pseudo words for roots should be ``False``.
        rel_scores (~torch.Tensor): ``[batch_size, seq_len, seq_len, n_rels]``. Optional.
        labels: the relation names of the last dim of ``rel_scores``.
        config: the builder configuration.
        progress: show a progress bar.

    Returns:
        ``[batch_size, seq_len]`` heads (0 is the root) and, when ``rel_scores`` is given,
        ``[batch_size, seq_len]`` relation indices. Sentences without a valid tree get all their
        tokens attached to the root.
    """
    assert (rel_scores is None) == (labels is None), 'rel_scores and labels go together.'
    config = BuilderConfig.build(config) if config is not None else BuilderConfig()
    batch_size, seq_len, _ = arc_scores.shape
    label_index = {label: i for i, label in enumerate(labels)} if labels is not None else None

    arc_scores = arc_scores.detach().float().cpu()
    if rel_scores is not None:
        rel_scores = rel_scores.detach().float().cpu()

    heads, rels, n_failed = [], [], 0
    for i, length in enumerate(tqdm(mask.sum(1).tolist(), disable=not progress, desc='decode')):
        labeler = None
        if rel_scores is not None:
            labeler = MatrixDeprelLabeler(rel_scores[i, :length + 1, :length + 1], labels)
        builder = DependencyTreeBuilder(ArcScores.from_matrix(arc_scores[i], length),
                                        deprel_labeler=labeler,
                                        config=config)
        tree = builder.build()

        if tree is None:
            n_failed += 1
            heads.append(torch.zeros(length + 1, dtype=torch.long))
            rels.append(torch.zeros(length + 1, dtype=torch.long))
            continue

        heads.append(torch.tensor([0] + tree.to_head_list(), dtype=torch.long))
        if label_index is not None:
            rels.append(torch.tensor([0] + [label_index.get(d.label, 0) if d is not None else 0
                                            for d in tree.deprels], dtype=torch.long))

    if n_failed:
        _warn(f'{n_failed} of {batch_size} sentences have no valid tree.')

    heads = pad(heads, total_length=seq_len).to(mask.device)
    if label_index is None:
        return heads, None
    return heads, pad(rels, total_length=seq_len).to(mask.device)
