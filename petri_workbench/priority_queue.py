"""
Generic binary-heap priority queue.

- O(log n) push/pop/replace
- O(1) peek
- O(n) heapify for bulk construction

Ordering comes entirely from a comparator `cmp(a, b)` returning a negative
number if `a` should come out first, 0 on ties and a positive number
otherwise; the root is always the minimum under that comparator.
"""

from typing import Callable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar('T')
Comparator = Callable[[T, T], float]


class PriorityQueue(Generic[T]):

    def __init__(self, comparator: Comparator, items: Optional[Iterable[T]] = None):
        self._cmp = comparator
        self._heap: List[T] = list(items) if items is not None else []
        if len(self._heap) > 1:
            self._heapify()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def size(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def clear(self) -> None:
        self._heap.clear()

    def peek(self) -> Optional[T]:
        return self._heap[0] if self._heap else None

    def to_list(self) -> List[T]:
        """Shallow copy of the heap array (heap order, not sorted)."""
        return list(self._heap)

    def push(self, value: T) -> None:
        self._heap.append(value)
        self._sift_up(len(self._heap) - 1)

    def pop(self) -> Optional[T]:
        """Remove and return the minimal element, or None when empty."""
        heap = self._heap
        if not heap:
            return None
        top = heap[0]
        last = heap.pop()
        if heap:
            heap[0] = last
            self._sift_down(0)
        return top

    def replace(self, value: T) -> Optional[T]:
        """
        Replace the root with `value` and restore heap order.

        Returns the previous root; on an empty queue this behaves like push
        and returns None.
        """
        if not self._heap:
            self._heap.append(value)
            return None
        top = self._heap[0]
        self._heap[0] = value
        self._sift_down(0)
        return top

    def _heapify(self) -> None:
        for i in range((len(self._heap) >> 1) - 1, -1, -1):
            self._sift_down(i)

    def _sift_up(self, i: int) -> None:
        heap, cmp = self._heap, self._cmp
        value = heap[i]
        while i > 0:
            parent = (i - 1) >> 1
            if cmp(value, heap[parent]) < 0:
                heap[i] = heap[parent]
                i = parent
            else:
                break
        heap[i] = value

    def _sift_down(self, i: int) -> None:
        heap, cmp = self._heap, self._cmp
        n = len(heap)
        value = heap[i]
        while True:
            left = (i << 1) + 1
            if left >= n:
                break
            best = left
            right = left + 1
            if right < n and cmp(heap[right], heap[left]) < 0:
                best = right
            if cmp(heap[best], value) < 0:
                heap[i] = heap[best]
                i = best
            else:
                break
        heap[i] = value


def number_min_comparator(a: float, b: float) -> float:
    return a - b


def number_max_comparator(a: float, b: float) -> float:
    return b - a


def min_heap(numbers: Optional[Iterable[float]] = None) -> PriorityQueue:
    return PriorityQueue(number_min_comparator, numbers)


def max_heap(numbers: Optional[Iterable[float]] = None) -> PriorityQueue:
    return PriorityQueue(number_max_comparator, numbers)


def by_key(key: Callable[[T], float]) -> Comparator:
    """Comparator ordering items by ascending `key(item)`."""
    return lambda a, b: key(a) - key(b)


def by_key_desc(key: Callable[[T], float]) -> Comparator:
    return lambda a, b: key(b) - key(a)
