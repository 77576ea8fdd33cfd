"""
Structure adapter over ASE Atoms.
"""

from typing import List
from ase import Atoms

from .bonds import BondGenerator
from .difference import StructureDifference, structure_difference

class AtomsStructure:
    """
    Structure seen by the pair-quantity evaluators.

    Wraps an ASE Atoms object without copying it; clone() makes the
    independent snapshot kept by the optimized evaluator.
    """

    def __init__(self, atoms: Atoms = None):
        self.atoms = atoms if atoms is not None else Atoms()

    def count_sites(self) -> int:
        return len(self.atoms)

    @property
    def symbols(self) -> List[str]:
        return list(self.atoms.get_chemical_symbols())

    @property
    def positions(self):
        return self.atoms.get_positions()

    def create_bond_generator(self) -> BondGenerator:
        return BondGenerator(self)

    def clone(self) -> "AtomsStructure":
        return type(self)(self.atoms.copy())

    def diff(self, other) -> StructureDifference:
        return structure_difference(self, other)

    def custom_quantity_config(self, quantity) -> None:
        """Hook for structure-specific quantity setup, called by set_structure."""
        pass

    def __len__(self):
        return self.count_sites()

    def __repr__(self):
        return f"AtomsStructure({self.atoms!r})"

def as_structure(obj) -> AtomsStructure:
    """Return obj as a structure adapter, wrapping plain ASE Atoms."""
    if obj is None:
        return AtomsStructure()
    if isinstance(obj, Atoms):
        return AtomsStructure(obj)
    return obj
