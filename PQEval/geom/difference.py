"""
Description of the change between two structures.
"""

import numpy as np
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Any

class DiffMethod(Enum):
    """How sites of the old and new structure were matched."""
    NONE = 0         # no correspondence, fast update impossible
    SIDEBYSIDE = 1   # site k of the old structure corresponds to site k
    SORTED = 2       # sites matched by species and position regardless of index

@dataclass
class StructureDifference:
    """
    Sites removed from the old structure and added in the new one.

    pop0 holds indices into stru0, add1 indices into stru1, both sorted.
    """
    stru0: Any = None
    stru1: Any = None
    pop0: List[int] = field(default_factory=list)
    add1: List[int] = field(default_factory=list)
    diff_method: DiffMethod = DiffMethod.NONE

    def allows_fast_update(self) -> bool:
        """True when removing and adding the changed sites is cheaper
        than a complete recalculation."""
        if self.stru0 is None or self.stru1 is None:
            return False
        if self.diff_method is DiffMethod.NONE:
            return False
        nchanged = len(self.pop0) + len(self.add1)
        nsites = self.stru0.count_sites() + self.stru1.count_sites()
        return nchanged < 0.5 * nsites

def complementary_indices(nsites: int, indices: List[int]) -> List[int]:
    """Sorted indices in range(nsites) that are not in the sorted indices."""
    excluded = set(indices)
    return [k for k in range(nsites) if k not in excluded]

def structure_difference(stru0, stru1) -> StructureDifference:
    """
    Compare two atoms-based structures.

    Structures with the same number of sites are compared side by side,
    otherwise sites are matched by atomic number and exact position.
    A change of the unit cell or periodicity disables fast updates.
    """
    sd = StructureDifference(stru0=stru0, stru1=stru1)
    if stru0 is stru1:
        sd.diff_method = DiffMethod.SIDEBYSIDE
        return sd

    atoms0 = getattr(stru0, 'atoms', None)
    atoms1 = getattr(stru1, 'atoms', None)
    if atoms0 is None or atoms1 is None:
        return sd

    if not np.array_equal(atoms0.pbc, atoms1.pbc):
        return sd
    if not np.array_equal(atoms0.cell.array, atoms1.cell.array):
        return sd

    numbers0 = atoms0.get_atomic_numbers()
    numbers1 = atoms1.get_atomic_numbers()
    positions0 = atoms0.get_positions()
    positions1 = atoms1.get_positions()

    if len(atoms0) == len(atoms1):
        changed = (numbers0 != numbers1) | np.any(positions0 != positions1, axis=1)
        indices = [int(k) for k in np.flatnonzero(changed)]
        sd.pop0 = indices
        sd.add1 = list(indices)
        sd.diff_method = DiffMethod.SIDEBYSIDE
        return sd

    # match sites of unequal structures by species and position
    available = defaultdict(list)
    for k, (z, xyz) in enumerate(zip(numbers1, positions1)):
        available[(int(z), tuple(xyz))].append(k)
    matched1 = set()
    pop0 = []
    for k, (z, xyz) in enumerate(zip(numbers0, positions0)):
        candidates = available.get((int(z), tuple(xyz)))
        if candidates:
            matched1.add(candidates.pop(0))
        else:
            pop0.append(k)
    sd.pop0 = pop0
    sd.add1 = [k for k in range(len(atoms1)) if k not in matched1]
    sd.diff_method = DiffMethod.SORTED
    return sd
