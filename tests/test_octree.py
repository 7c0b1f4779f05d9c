import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from orbslam.keypoint import KeyPoint
from orbslam.octree import ExtractorNode, distribute_oct_tree


def _square_node(keys, size=10):
    return ExtractorNode(keys=list(keys), ul=(0, 0), ur=(size, 0), bl=(0, size), br=(size, size))


def test_divide_corners_tile_parent():
    n1, n2, n3, n4 = _square_node([]).divide()
    assert n1.ul == (0, 0)
    assert n1.br == (5, 5)
    assert n2.ul == n1.ur and n2.ur == (10, 0)
    assert n3.bl == (0, 10) and n3.ul == n1.bl
    assert n4.br == (10, 10) and n4.ul == n1.br


def test_divide_partitions_keys():
    keys = [
        KeyPoint(1, 1),
        KeyPoint(7, 1),
        KeyPoint(2, 8),
        KeyPoint(8, 8),
        KeyPoint(9, 9),
    ]
    n1, n2, n3, n4 = _square_node(keys).divide()
    assert n1.keys == [keys[0]]
    assert n2.keys == [keys[1]]
    assert n3.keys == [keys[2]]
    assert n4.keys == [keys[3], keys[4]]
    assert n1.no_more and n2.no_more and n3.no_more
    assert not n4.no_more


def test_divide_boundary_goes_right_and_down():
    key = KeyPoint(5, 5)
    n1, n2, n3, n4 = _square_node([key]).divide()
    assert n4.keys == [key]
    assert n1.keys == n2.keys == n3.keys == []


def test_single_keypoint_is_returned():
    key = KeyPoint(3, 4, response=2.0)
    assert distribute_oct_tree([key], 0, 40, 0, 40, 10) == [key]


def test_no_keypoints_gives_empty_result():
    assert distribute_oct_tree([], 0, 40, 0, 40, 10) == []


def test_two_clusters_keep_strongest_of_each():
    cluster_a = [KeyPoint(10, 10, response=1.0), KeyPoint(12, 11, response=5.0), KeyPoint(11, 13, response=3.0)]
    cluster_b = [KeyPoint(90, 90, response=4.0), KeyPoint(88, 91, response=9.0)]
    result = distribute_oct_tree(cluster_a + cluster_b, 0, 100, 0, 100, 2)
    assert len(result) == 2
    assert {kp.response for kp in result} == {5.0, 9.0}


def test_equal_responses_keep_first_in_node():
    first = KeyPoint(10, 10, response=1.0)
    second = KeyPoint(11, 11, response=1.0)
    result = distribute_oct_tree([first, second, KeyPoint(90, 90)], 0, 100, 0, 100, 2)
    assert any(kp is first for kp in result)
    assert not any(kp is second for kp in result)


def test_enough_features_returns_every_distinct_point():
    keys = [KeyPoint(x, y, response=float(x + y)) for x in range(0, 40, 7) for y in range(0, 40, 9)]
    result = distribute_oct_tree(keys, 0, 40, 0, 40, 1000)
    assert sorted(kp.pt for kp in result) == sorted(kp.pt for kp in keys)


def test_flat_region_is_rejected():
    with pytest.raises(ValueError):
        distribute_oct_tree([KeyPoint(1, 0)], 0, 10, 5, 5, 3)


def test_tall_region_is_rejected():
    with pytest.raises(ValueError):
        distribute_oct_tree([KeyPoint(1, 1)], 0, 10, 0, 40, 3)


@settings(max_examples=60, deadline=None)
@given(
    points=st.sets(st.tuples(st.integers(0, 63), st.integers(0, 31)), min_size=1, max_size=60),
    n_features=st.integers(1, 80),
)
def test_result_is_subset_and_large_enough(points, n_features):
    keys = [KeyPoint(float(x), float(y), response=float((x * 7 + y * 3) % 11)) for x, y in points]
    result = distribute_oct_tree(keys, 0, 64, 0, 32, n_features)
    ids = {id(kp) for kp in keys}
    assert all(id(kp) in ids for kp in result)
    assert len({kp.pt for kp in result}) == len(result)
    assert len(result) >= min(n_features, len(keys))