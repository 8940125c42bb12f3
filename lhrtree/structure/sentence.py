from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from lhrtree.structure.dependency_tree import DependencyTree


@dataclass(frozen=True)
class Morphology:
    """One morphological analysis of a token. ``pos`` has one tag per component, space separated."""
    lemma: str
    pos: str

    @property
    def pos_tags(self) -> List[str]:
        return self.pos.split(' ')


@dataclass
class ParsingToken:
    id: int
    form: str
    morphologies: List[Morphology] = field(default_factory=list)


@dataclass
class ParsingSentence:
    tokens: List[ParsingToken]

    def __post_init__(self):
        ids = [t.id for t in self.tokens]
        if ids != list(range(len(ids))):
            raise ValueError(f'Token ids must be contiguous and start from 0, got {ids}.')

    @classmethod
    def from_forms(cls, forms: Sequence[str], pos: Optional[Sequence[str]] = None) -> ParsingSentence:
        pos = pos or [None] * len(forms)
        return cls([ParsingToken(id=i, form=form, morphologies=[Morphology(lemma=form, pos=p)] if p else [])
                    for i, (form, p) in enumerate(zip(forms, pos))])

    def __len__(self):
        return len(self.tokens)


@dataclass(frozen=True)
class MorphoSynToken:
    """What a constraint sees of a token: its form, morphology and syntactic relation."""
    id: int
    form: str
    governor: Optional[int]
    deprel: Optional[str]
    pos: Optional[str]
    lemma: Optional[str]


def build_morpho_syn_tokens(sentence: ParsingSentence, tree: DependencyTree) -> List[MorphoSynToken]:
    out = []
    for token in sentence.tokens:
        pos = tree.get_pos(token.id)
        deprel = tree.get_deprel(token.id)
        lemma = next((m.lemma for m in token.morphologies if m.pos == pos), None)
        if lemma is None and token.morphologies:
            lemma = token.morphologies[0].lemma
            pos = pos or token.morphologies[0].pos
        out.append(MorphoSynToken(id=token.id,
                                  form=token.form,
                                  governor=tree.get_head(token.id),
                                  deprel=deprel.relation if deprel is not None else None,
                                  pos=pos,
                                  lemma=lemma))
    return out
