from memory_hole.utils.collections import difference, distinct


def test_distinct_keeps_first_seen_order():
    assert distinct([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert distinct(None) == []


def test_distinct_compares_lists_by_value():
    assert distinct([["1", "a.txt"], ["1", "a.txt"], ["2", "b.txt"]]) == [["1", "a.txt"], ["2", "b.txt"]]


def test_difference():
    assert difference([1, 2, 3, 2], [2]) == [1, 3]
    assert difference(["x"], None) == ["x"]
    assert difference([], [1]) == []
