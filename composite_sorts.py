from dataclasses import dataclass

from composite_records import compare_records

#Operation counting and errors

@dataclass
class OperationCounts:
    """
    Work performed by one sort call.

    comparisons: calls to the composite comparator
    moves: element relocations (swaps for heap sort, shifts for
           two-way insertion)
    """
    comparisons: int = 0
    moves: int = 0


class SortError(Exception):
    """A sort run failed; the failure is local to that algorithm run."""


class BufferAllocationError(SortError):
    """The two-way insertion buffer of 2n + 1 slots could not be allocated."""

    def __init__(self, size):
        super().__init__(f"cannot allocate two-way insertion buffer of {size} slots")
        self.size = size


#Heap sort

def sift_down(a, root, size, counts=None):
    """
    Restore max-heap order for the subtree rooted at `root`.

    Only a[0:size] is considered part of the heap. The larger child is
    promoted when it is strictly greater than the parent; on equal
    children the left one wins. Iterative, so stack use stays constant
    however large the heap is.
    """
    while True:
        largest = root
        left = 2 * root + 1
        right = left + 1

        if left < size:
            if counts is not None:
                counts.comparisons += 1
            if compare_records(a[left], a[largest]) > 0:
                largest = left

        if right < size:
            if counts is not None:
                counts.comparisons += 1
            if compare_records(a[right], a[largest]) > 0:
                largest = right

        if largest == root:
            return

        a[root], a[largest] = a[largest], a[root]
        if counts is not None:
            counts.moves += 1
        root = largest


def heap_sort(a):
    """
    Sort `a` in place into ascending composite order.

    Build phase sifts every internal node from n//2 - 1 down to 0.
    Extraction phase swaps the root (current maximum) to the end of the
    shrinking heap and re-sifts from the root.

    Not stable: the root-to-end swap can carry a tied record past its
    twin. Nothing here tries to prevent that.

    Returns:
        OperationCounts for the run
    """
    counts = OperationCounts()
    n = len(a)

    #Trivial cases
    if n < 2:
        return counts

    for i in range(n // 2 - 1, -1, -1):
        sift_down(a, i, n, counts)

    for i in range(n - 1, 0, -1):
        a[0], a[i] = a[i], a[0]
        counts.moves += 1
        sift_down(a, 0, i, counts)

    return counts


#Two-way insertion sort

def _allocate_buffer(size):
    return [None] * size


def two_way_insertion_sort(a, on_progress=None, progress_every=10_000):
    """
    Sort `a` in place using double-ended buffered insertion.

    The buffer has exactly 2n + 1 slots. Both cursors start at the
    midpoint n, where the first element is placed; the sorted run then
    grows to the left for new minimums and to the right for new
    maximums. Anything in between is inserted by shifting the tail of
    the run one slot right.

    Stability:
    - The shift scan moves only elements strictly greater than the
      incoming one, so it stops right after the last tied element
      already placed and the new element lands behind it.
    - Ties never take the left/right fast paths (both are strict).

    Args:
        a: Mutable sequence of records
        on_progress: Optional callback on_progress(i, n), called every
            `progress_every` processed elements for inputs above 1000
        progress_every: Progress reporting interval

    Returns:
        OperationCounts; `moves` counts shifted elements only

    Raises:
        BufferAllocationError: the buffer could not be allocated; `a`
            is left untouched
    """
    counts = OperationCounts()
    n = len(a)

    #n <= 1 is already sorted and needs no buffer
    if n <= 1:
        return counts

    size = 2 * n + 1
    try:
        buf = _allocate_buffer(size)
    except MemoryError as exc:
        raise BufferAllocationError(size) from exc

    left = right = n
    buf[n] = a[0]

    for i in range(1, n):
        current = a[i]

        counts.comparisons += 1
        if compare_records(current, buf[left]) < 0:
            left -= 1
            buf[left] = current
        else:
            counts.comparisons += 1
            if compare_records(current, buf[right]) > 0:
                right += 1
                buf[right] = current
            else:
                #Shift strictly greater elements one slot right
                j = right
                while j >= left:
                    counts.comparisons += 1
                    if compare_records(current, buf[j]) >= 0:
                        break
                    buf[j + 1] = buf[j]
                    counts.moves += 1
                    j -= 1
                buf[j + 1] = current
                right += 1

        if on_progress is not None and n > 1000 and i % progress_every == 0:
            on_progress(i, n)

    a[:] = buf[left:left + n]
    del buf
    return counts


__all__ = [
    'OperationCounts',
    'SortError',
    'BufferAllocationError',
    'sift_down',
    'heap_sort',
    'two_way_insertion_sort',
]
