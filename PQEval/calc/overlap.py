"""
Calculator of atom radii overlaps.
"""

import numpy as np
from typing import Dict, List

from ..models.datatypes import OverlapRecord, PartitionData
from ..utils.ticker import EventTicker
from .evaluators import EvaluatorFlag, EvaluatorType
from .quantity import PairQuantity
from .radii import AtomRadiiTable, make_radii_table

# Å, match tolerance for cancelling pair records
RECORD_TOLERANCE = 1e-8

class OverlapCalculator(PairQuantity):
    """
    Overlaps of atom radii for all pairs of sites in a structure.

    Two sites overlap when their distance is smaller than the sum of their
    radii.  The value is the per-site sum of squared overlaps, where each
    overlapping pair charges half of its squared overlap to both sites for
    every direction in which it was generated.

    Every generated pair closer than twice the largest radius is kept as a
    record, overlapping or not, so that flip differences see the pairs which
    would start overlapping after the exchange of two radii.
    """

    def __init__(self, radii_table=None):
        super().__init__()
        self._radii_table = make_radii_table(radii_table)
        self._records: Dict[int, OverlapRecord] = {}
        self._neighbor_ids: List[List[int]] = []
        self._next_record_id = 0
        self._site_radii = np.zeros(0)
        self._max_separation = 0.0
        self._cache_key = None
        self._stashed_records = None
        self.set_evaluator_type(EvaluatorType.OPTIMIZED)
        self.evaluator.set_flag(EvaluatorFlag.USEFULLSUM)
        self.evaluator.set_flag(EvaluatorFlag.FIXEDSITEINDEX)
        self.set_structure(None)

    def __call__(self, structure) -> np.ndarray:
        """Return site_square_overlaps for the specified structure."""
        self.eval(structure)
        return self.site_square_overlaps()

    @property
    def ticker(self) -> EventTicker:
        return max(self._ticker, self._radii_table.ticker)

    # Radii table ----------------------------------------------------------

    def set_radii_table(self, table):
        self._radii_table = make_radii_table(table)
        self._ticker.click()

    def get_radii_table(self) -> AtomRadiiTable:
        return self._radii_table

    radii_table = property(get_radii_table, set_radii_table)

    def get_rmax_used(self) -> float:
        """Cutoff of the bond search, twice the largest site radius."""
        return self._max_separation

    def site_radii(self) -> np.ndarray:
        return self._site_radii.copy()

    # Results --------------------------------------------------------------

    def overlaps(self) -> np.ndarray:
        """Overlap values for all overlapping pairs."""
        return np.array([r.overlap for r in self._overlapping()], dtype=float)

    def distances(self) -> np.ndarray:
        """Distances of all overlapping pairs."""
        return np.array([r.distance for r in self._overlapping()], dtype=float)

    def directions(self) -> np.ndarray:
        """Unit vectors from the first to the second site of overlapping pairs."""
        rv = [np.array(r.r01) / r.distance for r in self._overlapping()]
        return np.array(rv, dtype=float).reshape(-1, 3)

    def sites0(self) -> np.ndarray:
        return np.array([r.site0 for r in self._overlapping()], dtype=int)

    def sites1(self) -> np.ndarray:
        return np.array([r.site1 for r in self._overlapping()], dtype=int)

    def records(self) -> List[OverlapRecord]:
        """All stored pair records, including the non-overlapping ones."""
        return list(self._records.values())

    def site_square_overlaps(self) -> np.ndarray:
        return self._value.copy()

    def total_square_overlap(self) -> float:
        # every overlapping pair is charged at both of its sites
        return 0.5 * float(np.sum(self._value))

    def msoverlap(self) -> float:
        """Mean square overlap per one site."""
        nsites = self.count_sites()
        if nsites == 0:
            return 0.0
        return self.total_square_overlap() / nsites

    def rmsoverlap(self) -> float:
        """Root mean square overlap per one site."""
        return float(np.sqrt(max(self.msoverlap(), 0.0)))

    def total_flip_diff(self, i: int, j: int) -> float:
        """
        Change of total_square_overlap if the radii of sites i and j
        were exchanged.

        Only the pair records of sites i and j are visited.
        """
        if i == j:
            return 0.0
        ri = self._site_radii[i]
        rj = self._site_radii[j]

        def flipped_radius(k):
            if k == i:
                return rj
            if k == j:
                return ri
            return self._site_radii[k]

        record_ids = dict.fromkeys(self._neighbor_ids[i] + self._neighbor_ids[j])
        rv = 0.0
        for rid in record_ids:
            rec = self._records[rid]
            o0 = max(rec.overlap, 0.0)
            o1 = max(flipped_radius(rec.site0) + flipped_radius(rec.site1) -
                     rec.distance, 0.0)
            rv += rec.weight * (o1 ** 2 - o0 ** 2) / 2
        return rv

    def gradients(self) -> np.ndarray:
        """Gradients of total_square_overlap with respect to site positions."""
        rv = np.zeros((self.count_sites(), 3))
        for rec in self._records.values():
            if rec.overlap <= 0 or rec.site0 == rec.site1:
                continue
            g = rec.weight * rec.overlap / rec.distance * np.array(rec.r01)
            rv[rec.site0] += g
            rv[rec.site1] -= g
        return rv

    # PairQuantity overloads -----------------------------------------------

    def reset_value(self):
        super().reset_value()
        self._records = {}
        self._neighbor_ids = [[] for _ in range(self.count_sites())]
        self._cache_structure_data()

    def configure_bond_generator(self, bonds):
        # radii follow the generator's structure, which is the evaluator's
        # snapshot in the removal pass of a fast update.  The radii table
        # may also have been edited by custom_quantity_config.
        self._cache_structure_data(bonds.structure)
        bonds.set_rmax(self._max_separation)

    def add_pair_contribution(self, bond, scale: int):
        if abs(scale) not in (1, 2):
            raise ValueError(f"Unsupported summation scale {scale}")
        d = bond.distance
        if d <= 0 or d >= self._max_separation:
            return
        i0, i1 = bond.site0, bond.site1
        overlap = self._site_radii[i0] + self._site_radii[i1] - d
        r01 = tuple(float(x) for x in bond.r01)
        r10 = tuple(-x for x in r01)
        weight = 1 if scale > 0 else -1
        self._update_record(i0, i1, d, r01, overlap, weight)
        if abs(scale) == 2:
            self._update_record(i1, i0, d, r10, overlap, weight)
        if overlap > 0:
            sqhalf = scale * overlap ** 2 / 2
            self._value[i0] += sqhalf
            self._value[i1] += sqhalf

    def stash_partial_value(self):
        super().stash_partial_value()
        self._stashed_records = (dict(self._records), self._next_record_id)

    def restore_partial_value(self):
        super().restore_partial_value()
        records, self._next_record_id = self._stashed_records
        self._stashed_records = None
        self._set_records(records)

    def get_parallel_data(self) -> PartitionData:
        data = super().get_parallel_data()
        data.records = self.records()
        return data

    def _new_merge_buffer(self) -> dict:
        buffer = super()._new_merge_buffer()
        buffer["records"] = []
        return buffer

    def execute_parallel_merge(self, buffer: dict, data: PartitionData):
        super().execute_parallel_merge(buffer, data)
        buffer["records"].extend(data.records)

    def _install_merged(self, buffer: dict):
        super()._install_merged(buffer)
        self._set_records({})
        # cancelling records of one partition meet their partners here
        for rec in buffer["records"]:
            self._update_record(rec.site0, rec.site1, rec.distance, rec.r01,
                                rec.overlap, rec.weight)

    # Helpers --------------------------------------------------------------

    def _overlapping(self) -> List[OverlapRecord]:
        return [r for r in self._records.values() if r.overlap > 0 and r.weight > 0]

    def _cache_structure_data(self, stru=None):
        """Update site radii and cutoff if the structure or radii changed."""
        if stru is None:
            stru = self._structure
        symbols = tuple(stru.symbols)
        key = (id(stru), symbols, id(self._radii_table),
               self._radii_table.ticker.value)
        if key == self._cache_key:
            return
        radii = self._radii_table.lookup_many(symbols)
        max_separation = 2 * float(radii.max()) if len(radii) else 0.0
        if max_separation != self._max_separation:
            self._ticker.click()
        self._site_radii = radii
        self._max_separation = max_separation
        self._cache_key = key

    def _update_record(self, i0, i1, distance, r01, overlap, weight):
        """
        Add (weight 1) or remove (weight -1) the record of one pair image.

        A record is removed by cancelling the stored record with the
        opposite weight.  When there is none, as in a partition that did not
        generate the pair, the new record is kept so that the merge of all
        partitions cancels it.
        """
        rid = self._find_record(i0, i1, r01, overlap, -weight)
        if rid is not None:
            del self._records[rid]
            self._neighbor_ids[i0].remove(rid)
            if i1 != i0:
                self._neighbor_ids[i1].remove(rid)
            return
        rid = self._next_record_id
        self._next_record_id += 1
        self._records[rid] = OverlapRecord(site0=i0, site1=i1, distance=distance,
                                           r01=r01, overlap=overlap, weight=weight)
        self._neighbor_ids[i0].append(rid)
        if i1 != i0:
            self._neighbor_ids[i1].append(rid)

    def _find_record(self, i0, i1, r01, overlap, weight):
        for rid in self._neighbor_ids[i0]:
            rec = self._records[rid]
            if rec.site0 != i0 or rec.site1 != i1 or rec.weight != weight:
                continue
            if abs(rec.overlap - overlap) > RECORD_TOLERANCE:
                continue
            if all(abs(a - b) <= RECORD_TOLERANCE for a, b in zip(rec.r01, r01)):
                return rid
        return None

    def _set_records(self, records: Dict[int, OverlapRecord]):
        """Install records and rebuild the per-site record id lists."""
        nsites = self.count_sites()
        self._records = {}
        self._neighbor_ids = [[] for _ in range(nsites)]
        for rid, rec in records.items():
            if rec.site0 >= nsites or rec.site1 >= nsites:
                continue
            self._records[rid] = rec
            self._neighbor_ids[rec.site0].append(rid)
            if rec.site1 != rec.site0:
                self._neighbor_ids[rec.site1].append(rid)

def make_overlap_calculator(config) -> OverlapCalculator:
    """Return an OverlapCalculator set up from a PQEvalConfig."""
    table = make_radii_table(config.radii_table)
    if config.custom_radii:
        table.set_custom(config.custom_radii)
    calc = OverlapCalculator(radii_table=table)
    calc.set_evaluator_type(config.evaluator_type)
    calc.set_evaluator_flag(EvaluatorFlag.USEFULLSUM, config.use_full_sum)
    calc.set_evaluator_flag(EvaluatorFlag.FIXEDSITEINDEX, config.fixed_site_index)
    return calc
