from dataclasses import dataclass
from enum import Enum
from typing import List


class Direction(str, Enum):
    # side of the dependent with respect to its governor: LEFT when the governor follows it
    LEFT = 'left'
    RIGHT = 'right'
    ROOT = 'root'
    NULL = 'null'


@dataclass(frozen=True)
class Deprel:
    """
    A syntactic relation label. Labels may carry the POS of the dependent as ``POS~rel``
    (one space separated group per component of a multi-word token), e.g. ``NOUN~nsubj``.
    """
    label: str
    direction: Direction = Direction.NULL

    @property
    def pos_tags(self) -> List[str]:
        return [part.split('~', 1)[0] for part in self.label.split(' ') if '~' in part]

    @property
    def relation(self) -> str:
        return ' '.join(part.split('~', 1)[-1] for part in self.label.split(' '))

    def __str__(self):
        return self.label


UNKNOWN_DEPREL = Deprel(label='UNKNOWN', direction=Direction.NULL)


@dataclass(frozen=True)
class ScoredDeprel:
    value: Deprel
    score: float
