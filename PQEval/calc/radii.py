"""
Atom radii lookup tables.
"""

import numpy as np
from typing import Dict, Iterable, Optional, Union
from ase.data import atomic_numbers, covalent_radii

from ..utils.ticker import EventTicker

class AtomRadiiTable:
    """
    Radius lookup by element symbol.

    Custom radii take precedence over the table defaults.  The base table
    has no defaults and returns zero for every element.  The ticker advances
    whenever the custom radii change.
    """

    name = "zero"

    def __init__(self, radii: Optional[Dict[str, float]] = None):
        self._custom: Dict[str, float] = {}
        self.ticker = EventTicker()
        if radii:
            self.set_custom(radii)

    def lookup(self, symbol: str) -> float:
        if symbol in self._custom:
            return self._custom[symbol]
        return self.table_lookup(symbol)

    def lookup_many(self, symbols: Iterable[str]) -> np.ndarray:
        return np.array([self.lookup(s) for s in symbols], dtype=float)

    def table_lookup(self, symbol: str) -> float:
        return 0.0

    def set_custom(self, radii: Dict[str, float]):
        for symbol, radius in radii.items():
            if radius < 0:
                raise ValueError(f"Negative radius {radius} for {symbol!r}")
            self._custom[symbol] = float(radius)
        self.ticker.click()

    def reset_custom(self, symbol: Optional[str] = None):
        """Remove the custom radius of symbol or of all elements."""
        if symbol is None:
            self._custom.clear()
        else:
            self._custom.pop(symbol, None)
        self.ticker.click()

    def get_all_custom(self) -> Dict[str, float]:
        return dict(self._custom)

    def __repr__(self):
        return f"{type(self).__name__}({self._custom!r})"

class CovalentRadiiTable(AtomRadiiTable):
    """Covalent radii from ase.data as table defaults."""

    name = "covalent"

    def table_lookup(self, symbol: str) -> float:
        if symbol not in atomic_numbers:
            raise ValueError(f"Unknown element symbol {symbol!r}")
        return float(covalent_radii[atomic_numbers[symbol]])

RADII_TABLES = {
    AtomRadiiTable.name: AtomRadiiTable,
    CovalentRadiiTable.name: CovalentRadiiTable,
}

def make_radii_table(source: Union[None, str, Dict[str, float], AtomRadiiTable] = None
                     ) -> AtomRadiiTable:
    """
    Return a radii table for a table name, a dict of radii or a table.

    None gives the empty table with zero radii.
    """
    if source is None:
        return AtomRadiiTable()
    if isinstance(source, AtomRadiiTable):
        return source
    if isinstance(source, str):
        cls = RADII_TABLES.get(source.lower())
        if cls is None:
            raise ValueError(f"Unknown radii table {source!r}, "
                             f"available: {sorted(RADII_TABLES)}")
        return cls()
    return AtomRadiiTable(dict(source))
