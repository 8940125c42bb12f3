import itertools

import pytest

from lhrtree import ROOT_ID
from lhrtree.builder import (BuilderConfig, Condition, CompositeDeprelSelector, DependencyTreeBuilder,
                             DoubleConstraint, TreeBuildError)
from lhrtree.structure import ArcScores, Deprel, DependencyTree, Direction, ParsingSentence, ScoredDeprel

NOT_UNDER_VERB = DoubleConstraint(premise=Condition(deprel='obj'), condition=Condition(pos='VERB', negated=True))


class StaticLabeler:
    """The same deprels for a token whatever its head."""

    def __init__(self, deprels):
        self.deprels = deprels

    def predict(self, tree):
        return [[ScoredDeprel(Deprel(label), score) for label, score in self.deprels[i]] for i in tree.elements]


def best_tree_score(scores):
    """Exhaustive search of the best single-root tree."""
    n = len(scores)
    best = float('-inf')
    for heads in itertools.product(range(ROOT_ID, n), repeat=n):
        if any(scores.score(dep, gov) is None for dep, gov in enumerate(heads)):
            continue
        tree = DependencyTree(range(n))
        for dep, gov in enumerate(heads):
            tree.set_arc(dep, gov, score=scores.score(dep, gov), allow_cycle=True)
        if tree.is_tree():
            best = max(best, tree.score)
    return best


def test_greedy_chain(chain_scores):
    tree = DependencyTreeBuilder(chain_scores).build()

    assert tree.heads == [None, 0, 1]
    assert tree.score == pytest.approx(2.4)
    assert tree.get_attachment_score(2) == pytest.approx(0.7)


def test_cycle_is_avoided(cyclic_scores):
    builder = DependencyTreeBuilder(cyclic_scores)
    state = builder.search()
    tree = builder.build()

    assert state is not None
    assert tree.heads == [1, 2, None]
    assert tree.score == pytest.approx(2.3)
    assert tree.is_tree()


def test_greedy_fallback_fixes_cycles(cyclic_scores):
    builder = DependencyTreeBuilder(cyclic_scores, config={'max_iterations': 0})
    tree = builder.build()

    assert builder.search() is None
    assert tree.heads == [1, 2, None]
    assert tree.is_tree()


def test_single_root():
    scores = ArcScores({0: [(ROOT_ID, 0.9)], 1: [(ROOT_ID, 0.8), (0, 0.1)]})

    assert DependencyTreeBuilder(scores).build().heads == [None, 0]
    assert DependencyTreeBuilder(scores, config={'single_root': False}).build().heads == [None, None]


def test_no_tree():
    scores = ArcScores({0: [(1, 0.9)], 1: [(0, 0.9)]})
    builder = DependencyTreeBuilder(scores)

    assert builder.build() is None
    with pytest.raises(TreeBuildError):
        builder.build_or_raise()


def test_empty_sentence():
    tree = DependencyTreeBuilder(ArcScores({})).build()
    assert len(tree) == 0


def test_invalid_arguments(chain_scores):
    with pytest.raises(ValueError):
        DependencyTreeBuilder(chain_scores, constraints=[NOT_UNDER_VERB])
    with pytest.raises(ValueError):
        DependencyTreeBuilder(chain_scores, sentence=ParsingSentence.from_forms(['a', 'b']))
    with pytest.raises(ValueError):
        DependencyTreeBuilder(chain_scores, config={'max_beam_size': 0})
    with pytest.raises(ValueError):
        DependencyTreeBuilder(chain_scores, config={'beam': 3})


def test_labels_above_the_threshold():
    scores = ArcScores({0: [(ROOT_ID, 1.0)]})
    labeler = StaticLabeler({0: [('a', 0.3), ('b', 0.2)]})
    tree = DependencyTreeBuilder(scores, deprel_labeler=labeler).build()

    # nothing reaches the threshold, the best one is kept
    assert tree.get_deprel(0) == Deprel('a')
    assert tree.score == pytest.approx(1.3)


def test_constraints_pick_the_second_label():
    sentence = ParsingSentence.from_forms(['she', 'runs'], pos=['PRON', 'VERB'])
    scores = ArcScores({0: [(1, 0.8), (ROOT_ID, 0.1)], 1: [(ROOT_ID, 0.9)]})
    labeler = StaticLabeler({0: [('obj', 0.6), ('nsubj', 0.55)], 1: [('root', 0.9)]})

    tree = DependencyTreeBuilder(scores, sentence=sentence, deprel_labeler=labeler,
                                 constraints=[NOT_UNDER_VERB]).build()

    assert tree.heads == [1, None]
    assert tree.get_deprel(0) == Deprel('nsubj')
    assert tree.get_pos(1) == 'VERB'
    assert tree.score == pytest.approx(0.8 + 0.9 + 0.55 + 0.9)


def test_unsatisfiable_constraints_fall_back_to_the_best_labels():
    sentence = ParsingSentence.from_forms(['eats', 'apple'], pos=['VERB', 'NOUN'])
    scores = ArcScores({0: [(ROOT_ID, 0.9)], 1: [(0, 0.8), (ROOT_ID, 0.1)]})
    labeler = StaticLabeler({0: [('root', 0.9)], 1: [('obj', 0.9)]})
    builder = DependencyTreeBuilder(scores, sentence=sentence, deprel_labeler=labeler, constraints=[NOT_UNDER_VERB])

    tree = builder.build()

    assert builder.search() is None
    assert tree.heads == [None, 0]
    assert tree.get_deprel(1) == Deprel('obj')
    assert tree.get_pos(0) == 'VERB'


def test_morphology_aware_labels():
    sentence = ParsingSentence.from_forms(['dogs', 'bark'], pos=['NOUN', 'VERB'])
    scores = ArcScores({0: [(1, 0.8), (ROOT_ID, 0.1)], 1: [(ROOT_ID, 0.9)]})

    class DirectedLabeler:
        def predict(self, tree):
            return [[ScoredDeprel(Deprel('VERB~root', Direction.ROOT), 0.7),
                     ScoredDeprel(Deprel('NOUN~nsubj', Direction.LEFT), 0.6)]] * len(tree)

    tree = DependencyTreeBuilder(scores, sentence=sentence, deprel_labeler=DirectedLabeler(),
                                 morpho_deprel_selector=CompositeDeprelSelector()).build()

    assert tree.get_deprel(0).label == 'NOUN~nsubj'
    assert tree.get_deprel(1).label == 'VERB~root'
    assert tree.get_pos(0) == 'NOUN'


@pytest.mark.parametrize('n', range(1, 9))
def test_random_sentences_give_trees(random_scores, n):
    for seed in range(5):
        scores = random_scores(n, seed)
        tree = DependencyTreeBuilder(scores).build()

        assert len(tree) == n
        assert tree.has_single_root()
        assert not tree.has_cycles()
        assert tree.is_tree()
        for dep, gov in enumerate(tree.heads):
            assert scores.score(dep, ROOT_ID if gov is None else gov) is not None


@pytest.mark.parametrize('n', [2, 3, 4])
def test_never_above_the_best_tree(random_scores, n):
    for seed in range(5):
        scores = random_scores(n, seed)
        tree = DependencyTreeBuilder(scores).build()

        assert tree.score <= best_tree_score(scores) + 1e-9


def test_builds_are_deterministic(random_scores):
    scores = random_scores(7, 3)
    first = DependencyTreeBuilder(scores).build()
    second = DependencyTreeBuilder(scores).build()

    assert first.heads == second.heads
    assert first.score == second.score


def test_more_iterations_never_lower_the_score(random_scores):
    for seed in range(5):
        scores = random_scores(6, seed)
        found = []
        for n_iterations in range(6):
            config = BuilderConfig(max_beam_size=3, max_fork_size=2, max_iterations=n_iterations)
            state = DependencyTreeBuilder(scores, config=config).search()
            found.append(float('-inf') if state is None else state.score)

        assert found == sorted(found)


@pytest.mark.parametrize('n', [4, 6, 8])
def test_wider_beams_never_lower_the_score(random_scores, n):
    for seed in range(5):
        scores = random_scores(n, seed)
        found = []
        for beam_size in range(1, 7):
            config = BuilderConfig(max_beam_size=beam_size, max_fork_size=2, max_iterations=3)
            state = DependencyTreeBuilder(scores, config=config).search()
            found.append(float('-inf') if state is None else state.score)

        assert found == sorted(found)
