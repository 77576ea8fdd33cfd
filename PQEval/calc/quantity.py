"""
Base class for quantities that are sums over pairs of sites.
"""

import numpy as np
from typing import Dict, Tuple, Union

from ..geom.structure import as_structure
from ..models.datatypes import PartitionData
from ..utils.ticker import EventTicker
from .evaluators import (
    EvaluatorFlag, EvaluatorType, PQEvaluator, create_evaluator
)

class PairQuantity:
    """
    Quantity accumulated from pair contributions of a structure.

    The value is a float array with one entry per site of the current
    structure.  Subclasses implement add_pair_contribution and may override
    the reset, configuration and merge hooks.
    """

    def __init__(self):
        self._ticker = EventTicker()
        self._value = np.zeros(0)
        self._structure = as_structure(None)
        self._evaluator = create_evaluator(EvaluatorType.BASIC)
        self._default_mask = True
        self._pair_masks: Dict[Tuple[int, int], bool] = {}
        self._stashed_value = None
        self._merge_buffers = {}

    # Evaluation -----------------------------------------------------------

    def eval(self, structure=None) -> np.ndarray:
        """Evaluate the quantity for structure or the current structure."""
        if structure is None:
            structure = self._structure
        self._evaluator.update_value(self, as_structure(structure))
        return self.value

    @property
    def value(self) -> np.ndarray:
        return self._value

    @property
    def ticker(self) -> EventTicker:
        """Time of the last configuration change."""
        return self._ticker

    @property
    def structure(self):
        return self._structure

    def set_structure(self, structure):
        """Install structure, reset the value and apply structure config."""
        self._structure = as_structure(structure)
        self.reset_value()
        self._structure.custom_quantity_config(self)

    def count_sites(self) -> int:
        return self._structure.count_sites()

    # Evaluator configuration ---------------------------------------------

    @property
    def evaluator(self) -> PQEvaluator:
        return self._evaluator

    def set_evaluator_type(self, kind: Union[EvaluatorType, str]):
        """Switch evaluator type keeping flags and partition settings."""
        evaluator = create_evaluator(kind, self._evaluator)
        if evaluator.kind is self._evaluator.kind:
            return
        self._evaluator = evaluator
        self._ticker.click()

    def get_evaluator_type(self) -> EvaluatorType:
        return self._evaluator.kind

    def get_evaluator_type_used(self) -> EvaluatorType:
        return self._evaluator.type_used

    def set_evaluator_flag(self, flag: EvaluatorFlag, value: bool = True):
        if self._evaluator.get_flag(flag) == bool(value):
            return
        self._evaluator.set_flag(flag, value)
        self._ticker.click()

    def get_evaluator_flag(self, flag: EvaluatorFlag) -> bool:
        return self._evaluator.get_flag(flag)

    def setup_parallel_run(self, cpu_index: int, ncpu: int):
        self._evaluator.setup_parallel_run(cpu_index, ncpu)
        self._ticker.click()

    # Pair masks ----------------------------------------------------------

    def set_pair_mask(self, i: Union[int, str], j: Union[int, str], mask: bool):
        """
        Include (True) or exclude (False) the pair of sites i, j.

        Either index may be "all", which stands for every site of the
        current structure.  Both "all" is the same as mask_all_pairs.
        """
        if i == "all" and j == "all":
            return self.mask_all_pairs(mask)
        if i == "all" or j == "all":
            k = j if i == "all" else i
            for other in range(self.count_sites()):
                self._set_one_pair_mask(k, other, mask)
        else:
            self._set_one_pair_mask(i, j, mask)
        self._ticker.click()

    def _set_one_pair_mask(self, i: int, j: int, mask: bool):
        key = (min(i, j), max(i, j))
        if mask == self._default_mask:
            self._pair_masks.pop(key, None)
        else:
            self._pair_masks[key] = bool(mask)

    def get_pair_mask(self, i: int, j: int) -> bool:
        if not self._pair_masks:
            return self._default_mask
        key = (min(i, j), max(i, j))
        return self._pair_masks.get(key, self._default_mask)

    def mask_all_pairs(self, mask: bool):
        """Set the mask of every pair, dropping per-pair exceptions."""
        self._default_mask = bool(mask)
        self._pair_masks.clear()
        self._ticker.click()

    def has_mask(self) -> bool:
        return not self._default_mask or bool(self._pair_masks)

    # Hooks for evaluators -------------------------------------------------

    def reset_value(self):
        self._value = np.zeros(self.count_sites())

    def configure_bond_generator(self, bonds):
        pass

    def add_pair_contribution(self, bond, scale: int):
        raise NotImplementedError

    def stash_partial_value(self):
        self._stashed_value = self._value.copy()

    def restore_partial_value(self):
        """Copy the stashed value into the current, possibly resized, buffer."""
        stashed = self._stashed_value
        value = np.zeros(self.count_sites())
        n = min(len(value), len(stashed))
        value[:n] = stashed[:n]
        self._value = value
        self._stashed_value = None

    # Parallel evaluation ---------------------------------------------------

    def get_parallel_data(self) -> PartitionData:
        """Partial result of this quantity for merging by a master copy."""
        return PartitionData(
            cpu_index=self._evaluator.cpu_index,
            ncpu=self._evaluator.ncpu,
            values=self._value.tolist(),
        )

    def accumulate_parallel_data(self, data: PartitionData, key: str = "default"):
        """Merge partition data into the merge buffer named key."""
        buffer = self._merge_buffers.get(key)
        if buffer is None:
            buffer = self._merge_buffers[key] = self._new_merge_buffer()
        self.execute_parallel_merge(buffer, data)

    def finish_parallel_merge(self, key: str = "default") -> np.ndarray:
        """Install the merged result of key as the quantity value."""
        if key not in self._merge_buffers:
            raise ValueError(f"No parallel data accumulated under key {key!r}")
        buffer = self._merge_buffers.pop(key)
        self._install_merged(buffer)
        # the merged value does not come from this quantity's evaluator
        self._ticker.click()
        return self.value

    def _new_merge_buffer(self) -> dict:
        return {"values": np.zeros(self.count_sites())}

    def execute_parallel_merge(self, buffer: dict, data: PartitionData):
        values = np.asarray(data.values, dtype=float)
        if values.shape != buffer["values"].shape:
            raise ValueError(
                f"Partition {data.cpu_index}/{data.ncpu} has {len(values)} "
                f"values, expected {len(buffer['values'])}")
        buffer["values"] += values

    def _install_merged(self, buffer: dict):
        self._value = buffer["values"].copy()
