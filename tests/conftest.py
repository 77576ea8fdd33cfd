"""
Shared fixtures for PQEval tests.
"""

import numpy as np
import pytest
from ase import Atoms

RADII = {'Na': 1.0, 'Cl': 0.8}

def make_ion_cluster(n=12, box=4.0, pbc=False, seed=0):
    """Random Na/Cl arrangement with several overlapping pairs."""
    rng = np.random.default_rng(seed)
    symbols = ['Na' if k % 2 else 'Cl' for k in range(n)]
    positions = rng.uniform(0.3, box - 0.3, size=(n, 3))
    atoms = Atoms(symbols=symbols, positions=positions)
    if pbc:
        atoms.set_cell([box, box, box])
        atoms.set_pbc(True)
    return atoms

def mutation_series(atoms):
    """Sequence of structures that each differ from the previous in few sites."""
    series = []
    a = atoms.copy()
    a.positions[3] += [0.4, -0.2, 0.1]
    series.append(a)
    a = a.copy()
    a.positions[7] += [-0.3, 0.5, 0.2]
    a.positions[0] += [0.1, 0.1, -0.35]
    series.append(a)
    a = a.copy()
    a[5].symbol = 'Na' if a[5].symbol == 'Cl' else 'Cl'
    series.append(a)
    a = a.copy()
    a.positions[5] += [0.25, 0.0, -0.15]
    series.append(a)
    return series

@pytest.fixture
def radii():
    return dict(RADII)

@pytest.fixture
def ion_cluster():
    return make_ion_cluster()

@pytest.fixture
def periodic_cluster():
    return make_ion_cluster(n=10, box=4.5, pbc=True, seed=7)

@pytest.fixture
def two_sites():
    """Factory of two Na sites along x at the given separation."""
    def factory(distance):
        return Atoms('Na2', positions=[(0.0, 0.0, 0.0), (distance, 0.0, 0.0)])
    return factory

@pytest.fixture
def cluster_factory():
    return make_ion_cluster

@pytest.fixture
def mutations():
    return mutation_series
