"""
Evaluators of pair quantities.

The basic evaluator always recalculates the quantity from scratch.  The
optimized evaluator keeps a snapshot of the last evaluated structure and,
when the structure difference allows it, only removes the pair contributions
of the changed sites and adds the contributions of their replacements.
Whenever that is unsafe it runs the complete recalculation instead, which
is observable through the ``type_used`` attribute.
"""

from enum import Enum, IntFlag
from typing import List, Optional, Union

from ..geom.difference import DiffMethod, complementary_indices
from ..geom.structure import as_structure
from ..utils.ticker import EventTicker

# tolerated load variance for splitting the outer loop between CPUs
CPU_LOAD_VARIANCE = 0.1

class EvaluatorType(Enum):
    NONE = 0
    BASIC = 1
    OPTIMIZED = 2

class EvaluatorFlag(IntFlag):
    USEFULLSUM = 1        # visit all ordered pairs instead of the lower triangle
    FIXEDSITEINDEX = 2    # fast updates only for side-by-side structure changes

class _WorkSplitter:
    """Round-robin assignment of work units to one of ncpu partitions."""

    def __init__(self, cpu_index: int, ncpu: int):
        self.cpu_index = cpu_index
        self.ncpu = ncpu
        self.counter = 0

    def take(self) -> bool:
        """Consume one work unit, return True if it belongs to this CPU."""
        k = self.counter
        self.counter += 1
        return k % self.ncpu == self.cpu_index

class PQEvaluator:
    """Configuration shared by all evaluator types."""

    kind = EvaluatorType.NONE

    def __init__(self):
        self.flags = EvaluatorFlag(0)
        self.cpu_index = 0
        self.ncpu = 1
        self.value_ticker = EventTicker()
        self.type_used = EvaluatorType.NONE

    def set_flag(self, flag: EvaluatorFlag, value: bool = True):
        if value:
            self.flags |= flag
        else:
            self.flags &= ~flag

    def get_flag(self, flag: EvaluatorFlag) -> bool:
        return bool(self.flags & flag)

    def setup_parallel_run(self, cpu_index: int, ncpu: int):
        """
        Restrict evaluation to partition cpu_index out of ncpu.

        Raises:
            ValueError: if ncpu is smaller than 1
        """
        if ncpu < 1:
            raise ValueError(f"Number of CPUs ncpu must be at least 1, got {ncpu}.")
        self.cpu_index = cpu_index
        self.ncpu = ncpu

    def is_parallel(self) -> bool:
        return self.ncpu > 1

    def __repr__(self):
        return (f"{type(self).__name__}(flags={self.flags!r}, "
                f"cpu_index={self.cpu_index}, ncpu={self.ncpu})")

def update_value_completely(evaluator: PQEvaluator, quantity, structure):
    """
    Recalculate quantity for structure from scratch.

    The evaluator supplies the summation flags and the partition settings
    and its value ticker is advanced when done.
    """
    evaluator.type_used = EvaluatorType.BASIC
    quantity.set_structure(structure)
    stru = quantity.structure
    bonds = stru.create_bond_generator()
    quantity.configure_bond_generator(bonds)
    nsites = stru.count_sites()
    splitter = _WorkSplitter(evaluator.cpu_index, evaluator.ncpu)
    # split the outer loop for many atoms, the CPUs should have similar load
    chop_outer = evaluator.ncpu <= (nsites - 1) * CPU_LOAD_VARIANCE + 1
    chop_inner = not chop_outer
    if not evaluator.is_parallel():
        chop_outer = chop_inner = False
    usefullsum = evaluator.get_flag(EvaluatorFlag.USEFULLSUM)
    for i0 in range(nsites):
        if chop_outer and not splitter.take():
            continue
        bonds.select_anchor_site(i0)
        bonds.select_site_range(0, nsites if usefullsum else i0 + 1)
        for bond in bonds:
            i1 = bond.site1
            if not quantity.get_pair_mask(i0, i1):
                continue
            if chop_inner and not splitter.take():
                continue
            scale = 1 if (usefullsum or i0 == i1) else 2
            quantity.add_pair_contribution(bond, scale)
    evaluator.value_ticker.click()

class BasicEvaluator(PQEvaluator):
    """Robust evaluator, the value is always calculated from scratch."""

    kind = EvaluatorType.BASIC

    def update_value(self, quantity, structure):
        update_value_completely(self, quantity, as_structure(structure))

class OptimizedEvaluator(PQEvaluator):
    """Evaluator with fast updates for small structure changes."""

    kind = EvaluatorType.OPTIMIZED

    def __init__(self):
        super().__init__()
        self.last_structure = None

    def update_value(self, quantity, structure):
        self.type_used = EvaluatorType.OPTIMIZED
        structure = as_structure(structure)
        if (quantity.ticker >= self.value_ticker or
                self.last_structure is None or quantity.has_mask()):
            return self._update_value_completely(quantity, structure)
        sd = self.last_structure.diff(structure)
        if not sd.allows_fast_update():
            return self._update_value_completely(quantity, structure)
        if (self.get_flag(EvaluatorFlag.FIXEDSITEINDEX) and
                sd.diff_method is not DiffMethod.SIDEBYSIDE):
            return self._update_value_completely(quantity, structure)
        usefullsum = self.get_flag(EvaluatorFlag.USEFULLSUM)
        splitter = _WorkSplitter(self.cpu_index, self.ncpu)
        # remove contributions of the popped sites from the old structure
        nsites0 = sd.stru0.count_sites()
        bonds0 = sd.stru0.create_bond_generator()
        quantity.configure_bond_generator(bonds0)
        bonds0.select_site_range(0, nsites0)
        anchors, unchanged = _anchor_sites(nsites0, sd.pop0, usefullsum)
        for k, i0 in enumerate(anchors):
            # unchanged anchors only pair with the popped sites
            if usefullsum and k == len(sd.pop0):
                _deselect(bonds0, unchanged)
            if splitter.take():
                bonds0.select_anchor_site(i0)
                for bond in bonds0:
                    scale = -1 if (usefullsum or i0 == bond.site1) else -2
                    quantity.add_pair_contribution(bond, scale)
            if not usefullsum:
                bonds0.select_site(i0, False)
        # set_structure resets the value and may reconfigure the quantity
        quantity.stash_partial_value()
        quantity.set_structure(sd.stru1)
        if quantity.ticker >= self.value_ticker:
            return self._update_value_completely(quantity, structure)
        quantity.restore_partial_value()
        # add contributions of the new sites in the updated structure
        nsites1 = sd.stru1.count_sites()
        bonds1 = sd.stru1.create_bond_generator()
        quantity.configure_bond_generator(bonds1)
        bonds1.select_site_range(0, nsites1)
        anchors, unchanged = _anchor_sites(nsites1, sd.add1, usefullsum)
        if not usefullsum:
            _deselect(bonds1, sd.add1)
        for k, i0 in enumerate(anchors):
            if usefullsum and k == len(sd.add1):
                _deselect(bonds1, unchanged)
            if not usefullsum:
                bonds1.select_site(i0, True)
            if not splitter.take():
                continue
            bonds1.select_anchor_site(i0)
            for bond in bonds1:
                scale = 1 if (usefullsum or i0 == bond.site1) else 2
                quantity.add_pair_contribution(bond, scale)
        self.last_structure = quantity.structure.clone()
        self.value_ticker.click()

    def _update_value_completely(self, quantity, structure):
        update_value_completely(self, quantity, structure)
        self.last_structure = quantity.structure.clone()

def _anchor_sites(nsites: int, changed: List[int], usefullsum: bool):
    """Anchor sites for one pass of the fast update and the unchanged sites.

    With full summation the unchanged sites follow the changed ones as
    anchors, because each of them holds a one-sided contribution from
    every changed partner.
    """
    anchors = list(changed)
    unchanged = []
    if usefullsum and changed:
        unchanged = complementary_indices(nsites, changed)
        anchors.extend(unchanged)
    return anchors, unchanged

def _deselect(bonds, indices):
    for i in indices:
        bonds.select_site(i, False)

# Factory for pair quantity evaluators ---------------------------------------

_EVALUATOR_CLASSES = {
    EvaluatorType.BASIC: BasicEvaluator,
    EvaluatorType.OPTIMIZED: OptimizedEvaluator,
}

def as_evaluator_type(kind: Union[EvaluatorType, str, int]) -> EvaluatorType:
    """Convert an evaluator type name or value to EvaluatorType."""
    if isinstance(kind, EvaluatorType):
        return kind
    try:
        if isinstance(kind, str):
            return EvaluatorType[kind.strip().upper()]
        return EvaluatorType(kind)
    except (KeyError, ValueError):
        raise ValueError(f"Invalid evaluator type {kind!r}") from None

def create_evaluator(kind: Union[EvaluatorType, str, int],
                     source: Optional[PQEvaluator] = None) -> PQEvaluator:
    """
    Create a new evaluator of the specified type.

    Args:
        kind: EvaluatorType.BASIC or EvaluatorType.OPTIMIZED, or their names
        source: Optional evaluator to copy flags, partition, value ticker
            and used type from.  Cached structures are never copied.

    Returns:
        New evaluator instance

    Raises:
        ValueError: for any other evaluator type
    """
    kind = as_evaluator_type(kind)
    cls = _EVALUATOR_CLASSES.get(kind)
    if cls is None:
        raise ValueError(f"Invalid evaluator type {kind!r}")
    rv = cls()
    if source is not None:
        rv.flags = source.flags
        rv.cpu_index = source.cpu_index
        rv.ncpu = source.ncpu
        rv.value_ticker = source.value_ticker.copy()
        rv.type_used = source.type_used
    return rv
