from typing import List, Optional, Protocol, Sequence

from lhrtree.structure.deprel import UNKNOWN_DEPREL, Deprel, Direction, ScoredDeprel
from lhrtree.structure.sentence import Morphology, ParsingSentence


class MorphoDeprelSelector(Protocol):
    def get_valid_deprels(self,
                          deprels: Sequence[ScoredDeprel],
                          sentence: Optional[ParsingSentence],
                          token_index: int,
                          head_index: Optional[int]) -> List[ScoredDeprel]:
        ...

    def get_valid_morphologies(self, morphologies: Sequence[Morphology], deprel: ScoredDeprel) -> List[Morphology]:
        ...


class NoFilterSelector:
    """Every deprel and every morphology is valid."""

    def get_valid_deprels(self, deprels, sentence, token_index, head_index):
        return list(deprels)

    def get_valid_morphologies(self, morphologies, deprel):
        return list(morphologies)


def _direction_agrees(deprel: Deprel, token_index: int, head_index: Optional[int]) -> bool:
    if deprel.direction == Direction.NULL:
        return True
    if head_index is None:
        return deprel.direction == Direction.ROOT
    if deprel.direction == Direction.ROOT:
        return False
    return (deprel.direction == Direction.LEFT) == (head_index > token_index)


class CompositeDeprelSelector:
    """
    Deprels whose labels carry POS tags (``POS~rel``): a deprel is valid for a token when its POS
    tags equal the tags of one of the token analyses and its direction agrees with the head side.
    Tokens without analyses accept any POS.
    """

    def get_valid_deprels(self, deprels, sentence, token_index, head_index):
        morphologies = sentence.tokens[token_index].morphologies if sentence is not None else []
        return [d for d in deprels
                if _direction_agrees(d.value, token_index, head_index)
                and (not morphologies or self.get_valid_morphologies(morphologies, d))]

    def get_best_deprel(self, deprels: Sequence[ScoredDeprel], sentence: ParsingSentence, token_index: int) -> Deprel:
        morphologies = sentence.tokens[token_index].morphologies
        return next((d.value for d in deprels if self.get_valid_morphologies(morphologies, d)), UNKNOWN_DEPREL)

    def get_valid_morphologies(self, morphologies, deprel):
        pos_tags = deprel.value.pos_tags
        return [m for m in morphologies if m.pos_tags == pos_tags]
