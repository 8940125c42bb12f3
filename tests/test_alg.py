import pytest

from lhrtree.utility.alg import istree, tarjan, walk_to_root


def test_tarjan():
    assert list(tarjan([2, 0, 2])) == []
    assert sorted(map(sorted, tarjan([2, 1, 0]))) == [[1, 2]]
    assert sorted(map(sorted, tarjan([2, 1, 4, 3, 0]))) == [[1, 2], [3, 4]]


@pytest.mark.parametrize('sequence, kwargs, expected', [
    ([3, 0, 0, 3], {'multiroot': True}, True),
    ([3, 0, 0, 3], {}, False),
    ([2, 0, 2], {}, True),
    ([2, 1, 0], {}, False),
    ([1, 0], {}, False),
    ([2, 1], {}, False),
])
def test_istree(sequence, kwargs, expected):
    assert istree(sequence, **kwargs) is expected


def test_walk_to_root():
    heads = [1, None, 1, 2]
    assert walk_to_root(heads, 3, 1)
    assert walk_to_root(heads, 2, 2)
    assert not walk_to_root(heads, 0, 3)
    # stops on a cycle without the target
    assert not walk_to_root([1, 0, None], 0, 2)
