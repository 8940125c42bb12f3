from typing import List, Sequence, TypeVar

T = TypeVar('T')


def not_empty_or(items: Sequence[T], fallback: Sequence[T]) -> List[T]:
    """``items`` if it is not empty, otherwise ``fallback``."""
    return list(items) if len(items) > 0 else list(fallback)


def pad(tensors, padding_value=0, total_length=None, padding_side='right'):
    size = [len(tensors)] + [max(tensor.size(i) for tensor in tensors) for i in range(len(tensors[0].size()))]
    if total_length is not None:
        assert total_length >= size[1]
        size[1] = total_length
    out_tensor = tensors[0].data.new(*size).fill_(padding_value)
    for i, tensor in enumerate(tensors):
        out_tensor[i][tuple(slice(-n, None) if padding_side == 'left' else slice(0, n) for n in tensor.size())] = tensor
    return out_tensor
