import numpy as np
import pytest

from petri_workbench.priority_queue import PriorityQueue, by_key, by_key_desc, max_heap, min_heap


def drain(queue):
    out = []
    while queue:
        out.append(queue.pop())
    return out


def test_min_heap_pops_in_ascending_order():
    queue = min_heap()
    for n in [5, 3, 8, 1, 9, 2, 7]:
        queue.push(n)
    assert queue.size() == 7
    assert queue.peek() == 1
    assert drain(queue) == [1, 2, 3, 5, 7, 8, 9]
    assert queue.is_empty()


def test_max_heap_from_initial_items():
    queue = max_heap([4, 10, 1, 7])
    assert len(queue) == 4
    assert drain(queue) == [10, 7, 4, 1]


def test_empty_queue_returns_none():
    queue = min_heap()
    assert queue.peek() is None
    assert queue.pop() is None
    assert not queue


def test_replace_returns_previous_root():
    queue = min_heap([3, 6, 9])
    assert queue.replace(7) == 3
    assert drain(queue) == [6, 7, 9]


def test_replace_on_empty_queue_acts_as_push():
    queue = min_heap()
    assert queue.replace(4) is None
    assert queue.to_list() == [4]


def test_clear_and_to_list_copy():
    queue = min_heap([2, 1])
    snapshot = queue.to_list()
    snapshot.append(100)
    assert queue.size() == 2
    queue.clear()
    assert queue.is_empty()


def test_key_comparators():
    items = [{'cost': 3}, {'cost': 1}, {'cost': 2}]
    assert [i['cost'] for i in drain(PriorityQueue(by_key(lambda i: i['cost']), items))] == [1, 2, 3]
    assert [i['cost'] for i in drain(PriorityQueue(by_key_desc(lambda i: i['cost']), items))] == [3, 2, 1]


@pytest.mark.parametrize('values', [[], [1], [2, 2, 2], list(range(20, 0, -1))])
def test_heap_sorts_any_input(values):
    assert drain(min_heap(values)) == sorted(values)


def test_tie_break_through_comparator():
    # (cost, insertion order) pairs come out FIFO among equal costs
    def compare(a, b):
        return (a[0] - b[0]) or (a[1] - b[1])

    queue = PriorityQueue(compare)
    for order, cost in enumerate([1, 0, 1, 0, 1]):
        queue.push((cost, order))
    assert drain(queue) == [(0, 1), (0, 3), (1, 0), (1, 2), (1, 4)]


@pytest.mark.parametrize('seed', range(20))
def test_interleaved_pushes_and_pops(seed):
    rng = np.random.default_rng(seed)
    queue = min_heap()
    reference = []
    pushes = pops = 0
    for _ in range(60):
        if reference and rng.random() < 0.4:
            reference.sort()
            assert queue.peek() == reference[0]
            assert queue.pop() == reference.pop(0)
            pops += 1
        else:
            value = int(rng.integers(-50, 50))
            queue.push(value)
            reference.append(value)
            pushes += 1
        assert queue.size() == pushes - pops
    assert drain(queue) == sorted(reference)
