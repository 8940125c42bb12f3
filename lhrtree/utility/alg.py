from typing import Iterator, List, Optional, Sequence


def istree(sequence, multiroot=False):
    r"""
    Checks if 1-based head indices (0 for the root) form a valid dependency tree.

    Examples:
        >>> istree([3, 0, 0, 3], multiroot=True)
        True
        >>> istree([3, 0, 0, 3])
        False
    """
    n_roots = sum(head == 0 for head in sequence)
    if n_roots == 0 or (n_roots > 1 and not multiroot):
        return False
    if any(i == head for i, head in enumerate(sequence, 1)):
        return False
    return next(tarjan(sequence), None) is None


def tarjan(sequence) -> Iterator[List[int]]:
    r"""
    Tarjan algorithm for finding Strongly Connected Components (SCCs) of a graph.
    Args:
        sequence (list):
            List of head indices.
    Yields:
        A list of indices making up a SCC. All self-loops are ignored.
    Examples:
        >>> next(tarjan([2, 5, 0, 3, 1]))  # (1 -> 5 -> 2 -> 1) is a cycle
        [2, 5, 1]
    """

    sequence = [-1] + list(sequence)
    # record the search order, i.e., the timestep
    dfn = [-1] * len(sequence)
    # record the the smallest timestep in a SCC
    low = [-1] * len(sequence)
    # push the visited into the stack
    stack, onstack = [], [False] * len(sequence)

    def connect(i, timestep):
        dfn[i] = low[i] = timestep[0]
        timestep[0] += 1
        stack.append(i)
        onstack[i] = True

        for j, head in enumerate(sequence):
            if head != i:
                continue
            if dfn[j] == -1:
                yield from connect(j, timestep)
                low[i] = min(low[i], low[j])
            elif onstack[j]:
                low[i] = min(low[i], dfn[j])

        # a SCC is completed
        if low[i] == dfn[i]:
            cycle = [stack.pop()]
            while cycle[-1] != i:
                onstack[cycle[-1]] = False
                cycle.append(stack.pop())
            onstack[i] = False
            # ignore the self-loop
            if len(cycle) > 1:
                yield cycle

    timestep = [0]
    for i in range(len(sequence)):
        if dfn[i] == -1:
            yield from connect(i, timestep)


def walk_to_root(heads: Sequence[Optional[int]], start: int, target: int) -> bool:
    """Follow head pointers from ``start``; True if ``target`` is met before a headless node.

    ``heads`` is 0-based with ``None`` for tokens without a head. The walk is bounded by the
    number of tokens, so it also stops on cycles that do not contain ``target``.
    """
    node = start
    for _ in range(len(heads) + 1):
        if node == target:
            return True
        node = heads[node]
        if node is None:
            return False
    return False

