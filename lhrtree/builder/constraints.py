from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from omegaconf import DictConfig, ListConfig, OmegaConf
from tqdm.auto import tqdm

from lhrtree.structure.sentence import MorphoSynToken
from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func('constraints')


@dataclass(frozen=True)
class Condition:
    """Matches a token whose given fields all equal the token ones. ``negated`` flips the match."""
    deprel: Optional[str] = None
    pos: Optional[str] = None
    lemma: Optional[str] = None
    form: Optional[str] = None
    negated: bool = False

    def matches(self, token: Optional[MorphoSynToken]) -> bool:
        if token is None:
            # the virtual root has no field to match
            matched = False
        else:
            matched = all(expected is None or getattr(token, name) == expected
                          for name, expected in (('deprel', self.deprel), ('pos', self.pos),
                                                 ('lemma', self.lemma), ('form', self.form)))
        return matched != self.negated


@dataclass(frozen=True)
class Constraint(ABC):
    """If ``premise`` matches a token, ``condition`` must match the token (or its governor)."""
    premise: Condition
    condition: Condition
    description: str = field(default='', compare=False)

    @abstractmethod
    def is_verified(self, token: MorphoSynToken, tokens: Mapping[int, MorphoSynToken]) -> bool:
        raise NotImplementedError

    def __str__(self):
        return self.description or repr(self)


@dataclass(frozen=True)
class SingleConstraint(Constraint):
    def is_verified(self, token: MorphoSynToken, tokens: Mapping[int, MorphoSynToken]) -> bool:
        return not self.premise.matches(token) or self.condition.matches(token)


@dataclass(frozen=True)
class DoubleConstraint(Constraint):
    """The premise is checked on the dependent, the condition on its governor."""

    def is_verified(self, token: MorphoSynToken, tokens: Mapping[int, MorphoSynToken]) -> bool:
        if not self.premise.matches(token):
            return True
        governor = tokens.get(token.governor) if token.governor is not None else None
        return self.condition.matches(governor)


_CONSTRAINT_TYPES = {'single': SingleConstraint, 'double': DoubleConstraint}


def find_violations(tokens: Sequence[MorphoSynToken],
                    constraints: Sequence[Constraint]) -> Dict[int, List[Constraint]]:
    """token id -> the constraints it violates. Empty if the sentence is valid."""
    by_id = {token.id: token for token in tokens}
    violated = {}
    for token in tokens:
        failed = [c for c in constraints if not c.is_verified(token, by_id)]
        if failed:
            violated[token.id] = failed
    return violated


@dataclass
class ValidationReport:
    """Violations over a corpus. Pairs in ``violations`` are (sentence index, token id)."""
    constraints: List[Constraint]
    n_sentences: int = 0
    n_valid: int = 0
    violations: Dict[Constraint, List[Tuple[int, int]]] = field(default_factory=dict)

    def violated_sentences(self, constraint: Constraint) -> List[int]:
        return sorted({sentence for sentence, _ in self.violations.get(constraint, [])})

    def n_violated(self, constraint: Constraint) -> int:
        return len(self.violated_sentences(constraint))

    def percentage(self, constraint: Constraint) -> float:
        if self.n_sentences == 0:
            return 0.0
        return 100 * self.n_violated(constraint) / self.n_sentences

    def summary(self) -> str:
        lines = [f'valid sentences: {self.n_valid}/{self.n_sentences}']
        for constraint in self.constraints:
            lines.append(f'{constraint}: {self.n_violated(constraint)} sentences '
                         f'({self.percentage(constraint):.2f}%)')
        return '\n'.join(lines)


def validate_sentences(sentences: Sequence[Sequence[MorphoSynToken]],
                       constraints: Sequence[Constraint],
                       progress: bool = False) -> ValidationReport:
    """Check every sentence of a corpus against the constraints."""
    report = ValidationReport(list(constraints), violations={c: [] for c in constraints})
    for index, tokens in enumerate(tqdm(sentences, disable=not progress, desc='validate')):
        violated = find_violations(tokens, constraints)
        report.n_sentences += 1
        if not violated:
            report.n_valid += 1
        for token_id, failed in violated.items():
            for constraint in failed:
                report.violations[constraint].append((index, token_id))
    _info(report.summary())
    return report


def constraint_from_dict(d: Mapping[str, Any]) -> Constraint:
    d = dict(d)
    kind = d.pop('type', 'single')
    if kind not in _CONSTRAINT_TYPES:
        raise ValueError(f'Unrecognized constraint type: {kind}')
    return _CONSTRAINT_TYPES[kind](premise=Condition(**d.get('premise', {})),
                                   condition=Condition(**d.get('condition', {})),
                                   description=d.get('description', ''))


def load_constraints(source: Union[str, Path, Sequence[Mapping[str, Any]], ListConfig, DictConfig]) -> List[Constraint]:
    """Load constraints from a yaml/json file or from already parsed data (a list or ``{constraints: [...]}``)."""
    if isinstance(source, (str, Path)):
        source = OmegaConf.load(source)
    if isinstance(source, (DictConfig, ListConfig)):
        source = OmegaConf.to_container(source, resolve=True)
    if isinstance(source, Mapping):
        source = source['constraints']
    constraints = [constraint_from_dict(item) for item in source]
    _debug(f'loaded {len(constraints)} constraints')
    return constraints
