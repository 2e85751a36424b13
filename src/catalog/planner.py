"""
Partition planning for task assignments.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")


def group_partitions(elements: Sequence[T], max_groups: int) -> list[list[T]]:
    """Split elements into at most max_groups contiguous, balanced groups.

    The number of groups is min(len(elements), max_groups). With n elements and
    g groups, the first n % g groups hold ceil(n / g) elements and the rest hold
    floor(n / g). Concatenating the groups in order gives back the input.

    Args:
        elements: Ordered elements to distribute
        max_groups: Upper bound on the number of groups, must be positive

    Returns:
        List of groups, empty when there are no elements

    Raises:
        ValueError: If max_groups is not a positive integer
    """
    if isinstance(max_groups, bool) or not isinstance(max_groups, int) or max_groups <= 0:
        raise ValueError(f"max_groups must be a positive integer, got {max_groups!r}")

    num_groups = min(len(elements), max_groups)
    if num_groups == 0:
        return []

    per_group, leftover = divmod(len(elements), num_groups)
    groups: list[list[T]] = []
    start = 0
    for index in range(num_groups):
        size = per_group + 1 if index < leftover else per_group
        groups.append(list(elements[start:start + size]))
        start += size
    return groups
