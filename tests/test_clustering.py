import numpy as np
import pytest
from scipy import ndimage

from MCCtools import (
    ClusteringOperations,
    InvalidArgumentError,
    MetadataConflictError,
    SciTensor,
    make_tensor,
    zeros,
)
from MCCtools.funcs.clustering import (
    AREA_KEY,
    COMPONENT_KEY,
    DIFFERENCE_KEY,
    NUM_COMPONENTS_KEY,
    VALUES_PRODUCT,
    label_components_2d_nb_core,
    label_components_2d_np_core,
)
from MCCtools.funcs.tensors import BACKENDS

backends = pytest.mark.parametrize("backend", BACKENDS)
kernels = pytest.mark.parametrize("use_numba", [True, False])

FOUR_CONNECTIVITY = np.array([[0, 1, 0],
                              [1, 1, 1],
                              [0, 1, 0]])

TWO_BLOCKS = np.array([[1.0, 1.0, 0.0, 0.0],
                       [1.0, 1.0, 0.0, 0.0],
                       [0.0, 0.0, 2.0, 2.0],
                       [0.0, 0.0, 2.0, 2.0]])


def label(field, backend="numba", use_numba=True, **kwargs):
    ops = ClusteringOperations(use_numba=use_numba, **kwargs)
    label_grid, count = ops.label_connected_components(make_tensor(field, backend=backend))
    return label_grid.to_numpy(), count


##########################################################################################
# Labeling
##########################################################################################

@kernels
@backends
def test_all_background_has_no_components(backend, use_numba):
    labels, count = label(np.zeros((5, 7)), backend, use_numba)
    assert count == 0
    assert not labels.any()


@kernels
@backends
def test_single_blob(backend, use_numba):
    field = np.zeros((6, 6))
    blob = [(1, 1), (1, 2), (2, 2), (3, 2), (3, 3), (3, 4)]
    for r, c in blob:
        field[r, c] = 2.0 + r
    labels, count = label(field, backend, use_numba)
    assert count == 1
    assert set(zip(*np.nonzero(labels))) == set(blob)
    assert np.all(labels[field != 0.0] == 1.0)


@kernels
@backends
def test_different_values_merge(backend, use_numba):
    labels, count = label(np.array([[3.0, 7.0]]), backend, use_numba)
    assert count == 1
    np.testing.assert_array_equal(labels, [[1.0, 1.0]])


@kernels
@backends
def test_diagonal_cells_are_not_adjacent(backend, use_numba):
    labels, count = label(np.array([[1.0, 0.0],
                                    [0.0, 1.0]]), backend, use_numba)
    assert count == 2
    np.testing.assert_array_equal(labels, [[1.0, 0.0], [0.0, 2.0]])


@kernels
@backends
def test_two_block_example(backend, use_numba):
    labels, count = label(TWO_BLOCKS, backend, use_numba)
    assert count == 2
    np.testing.assert_array_equal(labels[:2, :2], 1.0)
    np.testing.assert_array_equal(labels[2:, 2:], 2.0)
    np.testing.assert_array_equal(labels[:2, 2:], 0.0)
    np.testing.assert_array_equal(labels[2:, :2], 0.0)


@kernels
def test_labels_follow_row_major_seed_order(use_numba):
    field = np.array([[0.0, 5.0, 0.0],
                      [4.0, 0.0, 0.0],
                      [0.0, 0.0, 6.0]])
    labels, count = label(field, use_numba=use_numba)
    assert count == 3
    assert labels[0, 1] == 1.0
    assert labels[1, 0] == 2.0
    assert labels[2, 2] == 3.0


@kernels
def test_u_shape_is_one_component(use_numba):
    field = np.array([[1.0, 0.0, 1.0],
                      [1.0, 0.0, 1.0],
                      [1.0, 1.0, 1.0]])
    labels, count = label(field, use_numba=use_numba)
    assert count == 1
    assert labels.max() == 1.0


@kernels
def test_grid_sized_component_does_not_recurse(use_numba):
    # a serpentine path touches every row, forcing a deep fill
    field = np.zeros((201, 201))
    field[::2, :] = 1.0
    for r in range(1, 201, 2):
        field[r, -1 if (r // 2) % 2 == 0 else 0] = 1.0
    labels, count = label(field, use_numba=use_numba)
    assert count == 1
    assert np.count_nonzero(labels) == np.count_nonzero(field)

    full_labels, full_count = label(np.ones((300, 300)), use_numba=use_numba)
    assert full_count == 1
    assert np.all(full_labels == 1.0)


@kernels
def test_custom_background(use_numba):
    field = np.array([[-1.0, 0.0, -1.0],
                      [-1.0, -1.0, 3.0]])
    labels, count = label(field, use_numba=use_numba, background=-1.0)
    assert count == 2
    np.testing.assert_array_equal(labels, [[0.0, 1.0, 0.0], [0.0, 0.0, 2.0]])

    ops = ClusteringOperations(use_numba=use_numba)
    _, count = ops.label_connected_components(make_tensor(field), background=-1.0)
    assert count == 2


@kernels
@backends
def test_labeler_leaves_input_alone(backend, use_numba):
    field = TWO_BLOCKS.copy()
    t = make_tensor(field, backend=backend)
    label_grid, _ = ClusteringOperations(use_numba=use_numba).label_connected_components(t)
    np.testing.assert_array_equal(t.to_numpy(), TWO_BLOCKS)
    assert type(label_grid) is type(t)
    assert label_grid.shape == t.shape


def test_labeler_requires_2d():
    with pytest.raises(InvalidArgumentError):
        ClusteringOperations().label_connected_components(make_tensor(np.ones(5)))


@pytest.mark.parametrize("seed", range(5))
def test_matches_scipy_partition(seed):
    rng = np.random.default_rng(seed)
    field = rng.random((40, 37))
    field[field < 0.45] = 0.0

    expected, expected_count = ndimage.label(field != 0.0, structure=FOUR_CONNECTIVITY)

    for use_numba in (True, False):
        labels, count = label(field, use_numba=use_numba)
        assert count == expected_count
        # foreground iff labeled
        np.testing.assert_array_equal(labels != 0.0, field != 0.0)
        # same partition: every label maps to exactly one scipy label and back
        pairs = set(zip(labels[labels != 0].astype(int), expected[expected != 0]))
        assert len(pairs) == count
        assert len({a for a, _ in pairs}) == count
        assert len({b for _, b in pairs}) == count


def test_kernels_agree_on_float32():
    rng = np.random.default_rng(3)
    field = rng.random((25, 30)).astype(np.float32)
    field[field < 0.5] = 0.0

    labels_nb = np.zeros_like(field)
    labels_np = np.zeros_like(field)
    count_nb = label_components_2d_nb_core(field, np.float32(0.0), labels_nb)
    count_np = label_components_2d_np_core(field, 0.0, labels_np)
    assert count_nb == count_np
    np.testing.assert_array_equal(labels_nb, labels_np)


##########################################################################################
# Cloud element extraction
##########################################################################################

@kernels
@backends
def test_cloud_elements_of_two_block_example(backend, use_numba):
    st = SciTensor("precipitation", make_tensor(TWO_BLOCKS, backend=backend), {"SOURCE": "TRMM"})
    elements = ClusteringOperations(use_numba=use_numba).find_cloud_elements(st)

    assert len(elements) == 2
    for index, element in enumerate(elements):
        assert element.variable_name == "precipitation"
        assert element.metadata[AREA_KEY] == "4.0"
        assert element.metadata[COMPONENT_KEY] == str(index)
        assert list(element.metadata) == ["SOURCE", AREA_KEY, DIFFERENCE_KEY, COMPONENT_KEY]

    np.testing.assert_array_equal(elements[0].mask.to_numpy()[:2, :2], 1.0)
    assert elements[0].mask.sum() == 4.0
    np.testing.assert_array_equal(elements[1].mask.to_numpy()[2:, 2:], 1.0)
    assert elements[1].mask.sum() == 4.0

    # intensity range runs over the zero-filled grid
    assert elements[0].metadata[DIFFERENCE_KEY] == "1.0"
    assert elements[1].metadata[DIFFERENCE_KEY] == "2.0"


@backends
def test_masks_are_binary_and_cover_the_component(backend):
    field = np.array([[0.0, 3.0, 7.0],
                      [0.0, 0.0, 2.0],
                      [9.0, 0.0, 0.0]])
    st = SciTensor("tasmax", make_tensor(field, backend=backend))
    elements = ClusteringOperations().find_cloud_elements(st)

    assert len(elements) == 2
    first = elements[0].mask.to_numpy()
    assert set(np.unique(first)) == {0.0, 1.0}
    np.testing.assert_array_equal(first, [[0.0, 1.0, 1.0],
                                          [0.0, 0.0, 1.0],
                                          [0.0, 0.0, 0.0]])
    assert elements[0].metadata[AREA_KEY] == "3.0"
    assert elements[0].metadata[DIFFERENCE_KEY] == "7.0"
    assert elements[1].metadata[AREA_KEY] == "1.0"
    assert elements[1].metadata[DIFFERENCE_KEY] == "9.0"


def test_difference_when_component_fills_grid():
    st = SciTensor("rh", make_tensor([[2.0, 3.0], [4.0, 5.0]]))
    (element,) = ClusteringOperations().find_cloud_elements(st)
    assert element.metadata[DIFFERENCE_KEY] == "3.0"
    assert element.metadata[AREA_KEY] == "4.0"
    assert element.metadata[COMPONENT_KEY] == "0"


@backends
def test_values_product(backend):
    field = np.array([[0.0, 3.0, 7.0],
                      [0.0, 0.0, 2.0],
                      [9.0, 0.0, 0.0]])
    st = SciTensor("tasmax", make_tensor(field, backend=backend))
    elements = ClusteringOperations().find_cloud_elements(st, product=VALUES_PRODUCT)
    np.testing.assert_array_equal(elements[0].tensor.to_numpy(), [[0.0, 3.0, 7.0],
                                                                  [0.0, 0.0, 2.0],
                                                                  [0.0, 0.0, 0.0]])
    np.testing.assert_array_equal(elements[1].tensor.to_numpy(), [[0.0, 0.0, 0.0],
                                                                  [0.0, 0.0, 0.0],
                                                                  [9.0, 0.0, 0.0]])

    with pytest.raises(InvalidArgumentError):
        ClusteringOperations().find_cloud_elements(st, product="outline")


def test_extraction_never_overwrites_metadata():
    metadata = {"SOURCE": "TRMM", "AREA": "ocean"}
    st = SciTensor("precipitation", make_tensor(TWO_BLOCKS), metadata)
    with pytest.raises(MetadataConflictError):
        ClusteringOperations().find_cloud_elements(st)


def test_extraction_leaves_source_alone():
    st = SciTensor("precipitation", make_tensor(TWO_BLOCKS), {"SOURCE": "TRMM"})
    ClusteringOperations().find_cloud_elements(st)
    assert dict(st.metadata) == {"SOURCE": "TRMM"}
    np.testing.assert_array_equal(st.tensor.to_numpy(), TWO_BLOCKS)


@backends
def test_empty_field_gives_no_elements(backend):
    st = SciTensor("precipitation", zeros((4, 4), backend=backend))
    assert ClusteringOperations().find_cloud_elements(st) == []


def test_cloud_elements_are_immutable():
    st = SciTensor("precipitation", make_tensor(TWO_BLOCKS))
    element = ClusteringOperations().find_cloud_elements(st)[0]
    with pytest.raises(AttributeError):
        element.tensor = zeros((4, 4))
    with pytest.raises(TypeError):
        element.metadata[AREA_KEY] = "0"


@backends
def test_summary_variant(backend):
    st = SciTensor("precipitation", make_tensor(TWO_BLOCKS, backend=backend), {"SOURCE": "TRMM"})
    summary = ClusteringOperations().find_cloud_elements_summary(st)
    assert summary.variable_name == "precipitation"
    assert list(summary.metadata.items()) == [("SOURCE", "TRMM"), (NUM_COMPONENTS_KEY, "2")]
    np.testing.assert_array_equal(summary.tensor.to_numpy(), [[1.0, 1.0, 0.0, 0.0],
                                                              [1.0, 1.0, 0.0, 0.0],
                                                              [0.0, 0.0, 2.0, 2.0],
                                                              [0.0, 0.0, 2.0, 2.0]])

    empty = ClusteringOperations().find_cloud_elements_summary(
        SciTensor("precipitation", zeros((3, 3), backend=backend)))
    assert empty.metadata[NUM_COMPONENTS_KEY] == "0"


@backends
def test_component_masks_keep_label_values(backend):
    masks = ClusteringOperations().component_masks(make_tensor(TWO_BLOCKS, backend=backend))
    assert len(masks) == 2
    assert masks[0].sum() == 4.0
    assert masks[1].sum() == 8.0
    assert masks[1].max() == 2.0


@backends
def test_area_filled(backend):
    t = make_tensor([[0.0, 2.5, -1.0], [0.0, 0.0, 4.0]], backend=backend)
    assert ClusteringOperations().area_filled(t) == 3.0


def test_batch_processing_keeps_record_order():
    records = [
        SciTensor("precipitation", make_tensor(TWO_BLOCKS), {"TIME": "00"}),
        SciTensor("precipitation", zeros((4, 4)), {"TIME": "03"}),
        SciTensor("precipitation", make_tensor(np.ones((4, 4))), {"TIME": "06"}),
    ]
    results = ClusteringOperations().find_cloud_elements_batch(records)
    assert [len(r) for r in results] == [2, 0, 1]
    assert results[0][0].metadata["TIME"] == "00"
    assert results[2][0].metadata[AREA_KEY] == "16.0"


def test_batch_processing_with_reduction():
    records = [SciTensor("precipitation", make_tensor(TWO_BLOCKS), {"TIME": "00"})]
    (elements,) = ClusteringOperations().find_cloud_elements_batch(records, block_size=2)
    assert len(elements) == 2
    assert elements[0].tensor.shape == (2, 2)
    assert elements[0].metadata[AREA_KEY] == "1.0"
    assert elements[1].metadata[DIFFERENCE_KEY] == "2.0"


def test_verbose_progress(capsys):
    st = SciTensor("precipitation", make_tensor(TWO_BLOCKS))
    ClusteringOperations(verbose=True).find_cloud_elements(st)
    out = capsys.readouterr().out
    assert "Labeled 2 connected components" in out
    assert "Component 1: area 4" in out

    ClusteringOperations().find_cloud_elements(st)
    assert capsys.readouterr().out == ""
