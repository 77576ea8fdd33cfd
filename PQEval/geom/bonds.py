"""
Bond generation over periodic images within a distance cutoff.
"""

import numpy as np
from typing import NamedTuple
from ase.neighborlist import neighbor_list

DEFAULT_RMAX = 5.0  # Å

class Bond(NamedTuple):
    """One generated pair of sites."""
    site0: int
    site1: int
    distance: float      # Å
    r01: np.ndarray      # Å, vector from site0 to the site1 image

class BondGenerator:
    """
    Iterate bonds from one anchor site to a selectable set of partner sites.

    Partner sites are filtered by a boolean selection that can be edited
    between iterations.  All periodic images of a partner closer than rmax
    are generated, the zero-distance self pair never is.
    """

    def __init__(self, structure):
        self._structure = structure
        nsites = structure.count_sites()
        self._rmax = DEFAULT_RMAX
        self._anchor = 0
        self._selected = np.ones(nsites, dtype=bool)
        self._table = None

    @property
    def structure(self):
        """Structure whose bonds are generated."""
        return self._structure

    def set_rmax(self, rmax: float):
        if rmax < 0:
            raise ValueError(f"rmax must be non-negative, got {rmax}")
        rmax = float(rmax)
        if rmax != self._rmax:
            self._rmax = rmax
            self._table = None

    def get_rmax(self) -> float:
        return self._rmax

    def select_anchor_site(self, index: int):
        self._anchor = index

    def select_site_range(self, first: int, last: int):
        """Select partners in [first, last) and deselect all others."""
        self._selected[:] = False
        self._selected[first:last] = True

    def select_site(self, index: int, flag: bool = True):
        self._selected[index] = flag

    def __iter__(self):
        partners, distances, vectors, starts = self._neighbor_table()
        a = self._anchor
        for k in range(starts[a], starts[a + 1]):
            j = int(partners[k])
            if not self._selected[j]:
                continue
            yield Bond(a, j, float(distances[k]), vectors[k])

    def _neighbor_table(self):
        if self._table is not None:
            return self._table
        atoms = self._structure.atoms
        nsites = len(atoms)
        if nsites == 0 or self._rmax <= 0:
            i = np.zeros(0, dtype=int)
            j = np.zeros(0, dtype=int)
            d = np.zeros(0)
            D = np.zeros((0, 3))
        else:
            i, j, d, D = neighbor_list('ijdD', atoms, self._rmax,
                                       self_interaction=False)
            order = np.lexsort((d, j, i))
            i, j, d, D = i[order], j[order], d[order], D[order]
        starts = np.searchsorted(i, np.arange(nsites + 1))
        self._table = (j, d, D, starts)
        return self._table
