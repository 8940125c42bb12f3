from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from omegaconf import DictConfig

from lhrtree import ROOT_ID
from lhrtree.builder.beam import BeamManager, State
from lhrtree.builder.constraint_solver import DeprelConstraintSolver, InvalidConfiguration
from lhrtree.builder.constraints import Constraint
from lhrtree.builder.cycles_fixer import CyclesFixer
from lhrtree.builder.deprel_selector import MorphoDeprelSelector, NoFilterSelector
from lhrtree.builder.labeler import DeprelLabeler
from lhrtree.structure.arc_scores import ArcScores
from lhrtree.structure.dependency_tree import CycleDetectedError, DependencyTree
from lhrtree.structure.deprel import UNKNOWN_DEPREL, ScoredDeprel
from lhrtree.structure.sentence import ParsingSentence
from lhrtree.utility.config import Config
from lhrtree.utility.fn import not_empty_or
from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func('tree_builder')


@dataclass
class BuilderConfig(Config):
    max_beam_size: int = 10  # parallel states of the beam
    max_fork_size: int = 5  # forks generated from a state
    max_iterations: int = 10  # depth of the beam search
    deprel_score_threshold: float = 0.5
    single_root: bool = True

    def __post_init__(self):
        if self.max_beam_size < 1 or self.max_fork_size < 1 or self.max_iterations < 0:
            raise ValueError(f'Bad beam sizes: {self}')


@dataclass(frozen=True)
class ArcValue:
    dependent_id: int
    governor_id: int
    score: float


class TreeBuildError(Exception):
    pass


class _TreeStateStrategy:
    def __init__(self, builder: DependencyTreeBuilder):
        self.builder = builder
        self._validity: Dict[Tuple[int, ...], bool] = {}

    def score(self, state: State[ArcValue]) -> float:
        self.is_valid(state)
        return state.payload.score

    def is_valid(self, state: State[ArcValue]) -> bool:
        if state.key not in self._validity:
            state.payload, self._validity[state.key] = self.builder.build_state_tree(state)
        return self._validity[state.key]


class DependencyTreeBuilder:
    """
    Build the dependency tree of a sentence with the best configuration, exploring the candidate
    arcs (and the labels of the resulting trees) through a beam of parallel states.

    When the beam finds no valid tree, the tree is built greedily from the best head of each
    token and its cycles are repaired.

    Args:
        scores: the scored candidate heads of the sentence tokens.
        sentence: the sentence, needed by constraints and morphology-aware selectors.
        deprel_labeler: predicts the deprels of the tokens of a tree. No labels without it.
        constraints: linguistic constraints that a labelled tree must satisfy.
        morpho_deprel_selector: filters the deprels that are compatible with a token.
        config: a BuilderConfig, or a mapping to build one.
    """

    def __init__(self,
                 scores: ArcScores,
                 sentence: Optional[ParsingSentence] = None,
                 deprel_labeler: Optional[DeprelLabeler] = None,
                 constraints: Optional[Sequence[Constraint]] = None,
                 morpho_deprel_selector: Optional[MorphoDeprelSelector] = None,
                 config: Union[BuilderConfig, dict, DictConfig, None] = None):
        if constraints and sentence is None:
            raise ValueError('Constraints need the sentence.')
        if sentence is not None and len(sentence) != len(scores):
            raise ValueError(f'The sentence has {len(sentence)} tokens but {len(scores)} are scored.')

        self.scores = scores
        self.sentence = sentence
        self.deprel_labeler = deprel_labeler
        self.constraints = list(constraints) if constraints else None
        self.selector = morpho_deprel_selector or NoFilterSelector()
        self.config: BuilderConfig = BuilderConfig.build(config) if config is not None else BuilderConfig()

    def build(self) -> Optional[DependencyTree]:
        """
        Returns:
            the valid tree with the highest score, or None if neither the beam search nor the
            greedy fallback yield a valid tree.
        """
        if len(self.scores) == 0:
            return DependencyTree([])

        state = self.search()
        if state is not None:
            return state.payload

        _debug('No valid tree from the beam search, building it greedily.')
        tree = self._build_greedy_tree()
        if tree is None:
            _warn(f'No valid tree for a sentence of {len(self.scores)} tokens.')
        return tree

    def build_or_raise(self) -> DependencyTree:
        tree = self.build()
        if tree is None:
            raise TreeBuildError(f'No valid tree for a sentence of {len(self.scores)} tokens.')
        return tree

    def search(self) -> Optional[State[ArcValue]]:
        values_map = [[ArcValue(dependent_id=token_id, governor_id=arc.governor_id, score=arc.score)
                       for arc in self.scores.get_sorted_heads(token_id)]
                      for token_id in range(len(self.scores))]
        beam = BeamManager(values_map=values_map,
                           strategy=_TreeStateStrategy(self),
                           max_beam_size=self.config.max_beam_size,
                           max_fork_size=self.config.max_fork_size,
                           max_iterations=self.config.max_iterations)
        return beam.find_best_configuration(only_valid=True)

    def build_state_tree(self, state: State[ArcValue]) -> Tuple[DependencyTree, bool]:
        """The tree of a beam state and whether it is a valid (and validly labelled) tree."""
        tree = DependencyTree(range(len(self.scores)))
        try:
            for element in state.elements:
                arc = element.value
                if arc.governor_id == ROOT_ID:
                    tree.set_attachment_score(dependent=arc.dependent_id, score=arc.score)
                else:
                    tree.set_arc(dependent=arc.dependent_id, governor=arc.governor_id, score=arc.score)
        except CycleDetectedError:
            return tree, False

        if self.config.single_root and not tree.has_single_root():
            return tree, False

        if self.deprel_labeler is not None:
            return tree, self._assign_labels(tree, self._build_deprels_map(tree))
        return tree, True

    def _build_greedy_tree(self) -> Optional[DependencyTree]:
        top = self.scores.find_highest_scoring_top()
        if top is None:
            return None

        tree = DependencyTree(range(len(self.scores)))
        top_id, top_score = top
        tree.set_attachment_score(dependent=top_id, score=top_score)

        for dep_id in tree.elements:
            if dep_id == top_id:
                continue
            arc = self.scores.find_highest_scoring_head(dependent_id=dep_id, except_ids={ROOT_ID})
            if arc is None:
                tree.set_attachment_score(dependent=dep_id, score=self.scores.root_score(dep_id))
            else:
                tree.set_arc(dependent=dep_id, governor=arc.governor_id, score=arc.score, allow_cycle=True)

        CyclesFixer(tree, self.scores).fix_cycles()

        if not tree.is_tree(single_root=self.config.single_root):
            return None

        if self.deprel_labeler is not None:
            deprels_map = self._build_deprels_map(tree)
            if not self._assign_labels(tree, deprels_map):
                _debug('Constraints can not be satisfied, labelling without them.')
                self._assign_best_labels(tree, deprels_map)
        return tree

    def _assign_labels(self, tree: DependencyTree, deprels_map: Dict[int, List[ScoredDeprel]]) -> bool:
        """Label the tree; False when the constraints can not be satisfied."""
        if not self.constraints:
            self._assign_best_labels(tree, deprels_map)
            return True
        try:
            DeprelConstraintSolver(sentence=self.sentence,
                                   dependency_tree=tree,
                                   constraints=self.constraints,
                                   morpho_deprel_selector=self.selector,
                                   scores_map=deprels_map,
                                   max_beam_size=self.config.max_beam_size,
                                   max_fork_size=self.config.max_fork_size,
                                   max_iterations=self.config.max_iterations).solve()
        except InvalidConfiguration as e:
            _debug(str(e))
            return False
        return True

    def _assign_best_labels(self, tree: DependencyTree, deprels_map: Dict[int, List[ScoredDeprel]]):
        for token_id, deprels in deprels_map.items():
            best = deprels[0]
            tree.set_deprel(token_id, best.value, score=best.score)
            if self.sentence is not None:
                morphologies = self.selector.get_valid_morphologies(self.sentence.tokens[token_id].morphologies, best)
                tree.set_pos(token_id, morphologies[0].pos if morphologies else None)

    def _build_deprels_map(self, tree: DependencyTree) -> Dict[int, List[ScoredDeprel]]:
        """token id -> the valid deprels above the score threshold (at least the best valid one)."""
        predictions = self.deprel_labeler.predict(tree)
        assert len(predictions) == len(tree), f'{len(predictions)=}, {len(tree)=}'

        deprels_map = {}
        for token_id, prediction in zip(tree.elements, predictions):
            head = tree.get_head(token_id)
            valid = self.selector.get_valid_deprels(deprels=prediction,
                                                    sentence=self.sentence,
                                                    token_index=tree.get_position(token_id),
                                                    head_index=None if head is None else tree.get_position(head))
            best = not_empty_or(valid[:1], not_empty_or(prediction[:1], [ScoredDeprel(UNKNOWN_DEPREL, 0.0)]))
            deprels_map[token_id] = not_empty_or(
                [d for d in valid if d.score >= self.config.deprel_score_threshold], best)
        return deprels_map
