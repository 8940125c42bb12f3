import numpy as np
import pytest

from lhrtree import ROOT_ID
from lhrtree.structure import ArcScores


@pytest.fixture
def chain_scores():
    # 0 is the top, 1 <- 0, 2 <- 1
    return ArcScores({
        0: [(ROOT_ID, 0.9)],
        1: [(0, 0.8), (ROOT_ID, 0.1)],
        2: [(1, 0.7), (0, 0.6), (ROOT_ID, 0.05)],
    })


@pytest.fixture
def cyclic_scores():
    # the best heads of 0 and 1 point at each other
    return ArcScores({
        0: [(1, 0.9), (2, 0.3)],
        1: [(0, 0.9), (2, 0.5)],
        2: [(ROOT_ID, 0.9)],
    })


@pytest.fixture
def random_scores():
    def factory(n, seed):
        rng = np.random.default_rng(seed)
        return ArcScores.from_matrix(rng.normal(size=(n + 1, n + 1)))

    return factory
