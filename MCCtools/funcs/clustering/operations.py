"""
MCCtools Clustering Operations Module

Connected-component labeling of gridded fields and extraction of "cloud
elements": one masked tensor per 4-connected region of non-background
cells, with area and intensity-range statistics appended to the metadata.

Author: MCCtools developers
"""

from typing import Iterable, List, Optional, Tuple

import numpy as np
from joblib import Parallel, delayed

from .constants import *
from .core_functions import *
from ..resolution.operations import ResolutionOperations
from ..tensors.constants import BACKGROUND
from ..tensors.operations import AbstractTensor
from ..tensors.sci_tensor import SciTensor
from ...exceptions import InvalidArgumentError


class ClusteringOperations():
    """
    Grid connected-component labeling and cloud element extraction.

    Connectivity is 4-neighbour and decided by foreground/background only:
    adjacent cells with different non-background values belong to the same
    component. Threshold the field first if value-homogeneous regions are
    wanted.
    """

    def __init__(
        self,
        use_numba: bool = True,
        background: float = BACKGROUND,
        verbose: bool = False) -> None:
        """
        Initialize clustering operations.

        Args:
            use_numba: Whether to use the Numba flood-fill kernel (recommended)
            background: Sentinel value marking empty cells
            verbose: Whether to print progress information
        """
        self.use_numba = use_numba
        self.background = float(background)
        self.verbose = verbose

    def label_connected_components(
        self,
        tensor: AbstractTensor,
        background: Optional[float] = None) -> Tuple[AbstractTensor, int]:
        """
        Label the 4-connected non-background regions of a 2D tensor.

        Cells are scanned in row-major order; each unlabeled non-background
        cell seeds the next label (starting at 1) and everything reachable
        from it through non-background cells gets the same label.

        Args:
            tensor: (R, C) tensor of any backend, not modified
            background: overrides the instance background value

        Returns:
            label_grid: tensor of the same shape and backend, 0 on background
                        cells and the component label elsewhere
            count: number of components (0 for an all-background tensor)
        """
        if tensor.ndim != 2:
            raise InvalidArgumentError(f"tensor must be 2D, got {tensor.ndim}D")
        if background is None:
            background = self.background

        field = tensor.to_numpy()
        labels = np.zeros_like(field)

        if self.use_numba:
            count = label_components_2d_nb_core(field, field.dtype.type(background), labels)
        else:
            count = label_components_2d_np_core(field, background, labels)

        if self.verbose:
            print(f"Labeled {int(count)} connected components in a {field.shape} grid")

        return tensor.like(labels), int(count)

    def component_masks(
        self,
        tensor: AbstractTensor) -> List[AbstractTensor]:
        """
        Split a tensor into one tensor per component.

        Each returned tensor holds the component's label on its cells and 0
        elsewhere, in label order.
        """
        label_grid, count = self.label_connected_components(tensor)
        return [label_grid == float(k) for k in range(1, count + 1)]

    def area_filled(
        self,
        tensor: AbstractTensor) -> float:
        """Number of non-zero cells in a tensor."""
        return tensor.map(binary_indicator).sum()

    def find_cloud_elements(
        self,
        sci_tensor: SciTensor,
        product: str = MASK_PRODUCT) -> List[SciTensor]:
        """
        Extract one cloud element per connected component.

        For component k the element carries a binary mask (or the source
        values under that mask) and a copy of the source metadata extended
        with:
            AREA       - number of cells in the component
            DIFFERENCE - max - min of the masked source values; the min/max
                         run over the whole masked grid, so the zero fill
                         outside the component takes part
            COMPONENT  - 0-based component index (label k - 1)

        Args:
            sci_tensor: source tensor with its variable name and metadata
            product: 'mask' (default) or 'values'

        Returns:
            list of SciTensors in label order; empty if nothing is found
        """
        if product not in PRODUCTS:
            raise InvalidArgumentError(f"product must be one of {PRODUCTS}, got {product!r}")

        source = sci_tensor.tensor
        label_grid, count = self.label_connected_components(source)

        elements = []
        for k in range(1, count + 1):
            mask = (label_grid == float(k)).map(binary_indicator)
            region_values = source * mask
            area = mask.sum()
            difference = region_values.max() - region_values.min()

            if self.verbose:
                print(f"  Component {k - 1}: area {area:.0f}, difference {difference:.4g}")

            elements.append(sci_tensor.derive(
                mask if product == MASK_PRODUCT else region_values,
                {
                    AREA_KEY: area,
                    DIFFERENCE_KEY: difference,
                    COMPONENT_KEY: k - 1,
                }))

        return elements

    def find_cloud_elements_summary(
        self,
        sci_tensor: SciTensor) -> SciTensor:
        """
        Label a tensor without splitting it into elements.

        Returns:
            SciTensor holding the label grid, with NUM_COMPONENTS appended
            to the metadata
        """
        label_grid, count = self.label_connected_components(sci_tensor.tensor)
        return sci_tensor.derive(label_grid, {NUM_COMPONENTS_KEY: count})

    def _process_record(
        self,
        sci_tensor: SciTensor,
        block_size: Optional[int],
        product: str) -> List[SciTensor]:
        if block_size is not None:
            reducer = ResolutionOperations(use_numba=self.use_numba,
                                           background=self.background,
                                           verbose=self.verbose)
            sci_tensor = reducer.reduce_sci_tensor(sci_tensor, block_size)
        return self.find_cloud_elements(sci_tensor, product=product)

    def find_cloud_elements_batch(
        self,
        records: Iterable[SciTensor],
        block_size: Optional[int] = None,
        product: str = MASK_PRODUCT,
        n_jobs: int = 1) -> List[List[SciTensor]]:
        """
        Run optional resolution reduction and cloud element extraction over
        many independent records.

        Args:
            records: SciTensors, one per time step / file
            block_size: if given, reduce each record with this block size first
            product: 'mask' or 'values', see find_cloud_elements
            n_jobs: joblib worker count (1 runs in-process, -1 uses all cores)

        Returns:
            one list of cloud elements per record, in input order
        """
        records = list(records)
        if self.verbose:
            print(f"Extracting cloud elements from {len(records)} records with n_jobs={n_jobs}")
        return Parallel(n_jobs=n_jobs)(
            delayed(self._process_record)(record, block_size, product)
            for record in records
        )
