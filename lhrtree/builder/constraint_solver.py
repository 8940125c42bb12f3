from typing import Dict, List, Mapping, Optional, Sequence

from lhrtree.builder.beam import BeamManager, State
from lhrtree.builder.constraints import Constraint, find_violations
from lhrtree.builder.deprel_selector import MorphoDeprelSelector
from lhrtree.structure.dependency_tree import DependencyTree
from lhrtree.structure.deprel import ScoredDeprel
from lhrtree.structure.sentence import ParsingSentence, build_morpho_syn_tokens
from lhrtree.utility.logger import get_logger_func

_warn, _info, _debug = get_logger_func('constraint_solver')


class InvalidConfiguration(Exception):
    def __init__(self, violations: Optional[Dict[int, List[Constraint]]] = None):
        violations = violations or {}
        details = '; '.join(f'{token_id}: {", ".join(map(str, cs))}' for token_id, cs in violations.items())
        super().__init__(f'No deprel configuration satisfies the constraints. {details}'.strip())
        self.violations = violations


class _LabellingStrategy:
    def __init__(self, solver: 'DeprelConstraintSolver'):
        self.solver = solver

    def score(self, state: State[ScoredDeprel]) -> float:
        return sum(e.value.score for e in state.elements)

    def is_valid(self, state: State[ScoredDeprel]) -> bool:
        if state.payload is None:
            state.payload = self.solver.labelled_copy(state)
        tokens = build_morpho_syn_tokens(self.solver.sentence, state.payload)
        return not find_violations(tokens, self.solver.constraints)


class DeprelConstraintSolver:
    """
    Choose one deprel per token so that no constraint is violated, preferring the configuration
    with the highest sum of deprel scores. The heads of the tree are fixed; the labels of a token
    and of its governor are searched jointly through a beam over the candidate deprels.

    Args:
        sentence: the sentence, for the morphologies of its tokens.
        dependency_tree: the tree to label, modified in place by ``solve``.
        constraints: the linguistic constraints.
        morpho_deprel_selector: maps a deprel to the compatible morphologies of a token.
        scores_map: token id -> candidate deprels sorted by descending score.
    """

    def __init__(self,
                 sentence: ParsingSentence,
                 dependency_tree: DependencyTree,
                 constraints: Sequence[Constraint],
                 morpho_deprel_selector: MorphoDeprelSelector,
                 scores_map: Mapping[int, Sequence[ScoredDeprel]],
                 max_beam_size: int = 10,
                 max_fork_size: int = 5,
                 max_iterations: int = 10):
        assert len(sentence) == len(dependency_tree), 'The sentence and the tree have different sizes.'
        self.sentence = sentence
        self.tree = dependency_tree
        self.constraints = list(constraints)
        self.selector = morpho_deprel_selector
        self.scores_map = scores_map
        self.max_beam_size = max_beam_size
        self.max_fork_size = max_fork_size
        self.max_iterations = max_iterations

    def solve(self):
        """Label the tree. Raises InvalidConfiguration if no configuration is valid."""
        beam = BeamManager(values_map=[self.scores_map[token_id] for token_id in self.tree.elements],
                           strategy=_LabellingStrategy(self),
                           max_beam_size=self.max_beam_size,
                           max_fork_size=self.max_fork_size,
                           max_iterations=self.max_iterations)
        best = beam.find_best_configuration(only_valid=True)
        if best is None:
            closest = build_morpho_syn_tokens(self.sentence, beam.best.payload)
            violations = find_violations(closest, self.constraints)
            raise InvalidConfiguration(violations)
        self._apply(self.tree, best)

    def labelled_copy(self, state: State[ScoredDeprel]) -> DependencyTree:
        tree = self.tree.copy()
        self._apply(tree, state)
        return tree

    def _apply(self, tree: DependencyTree, state: State[ScoredDeprel]):
        for element in state.elements:
            token_id = self.tree.elements[element.id]
            scored = element.value
            tree.set_deprel(token_id, scored.value, score=scored.score)
            tree.set_pos(token_id, self._pos_of(token_id, scored))

    def _pos_of(self, token_id: int, deprel: ScoredDeprel) -> Optional[str]:
        morphologies = self.selector.get_valid_morphologies(self.sentence.tokens[token_id].morphologies, deprel)
        if morphologies:
            return morphologies[0].pos
        return ' '.join(deprel.value.pos_tags) or None
