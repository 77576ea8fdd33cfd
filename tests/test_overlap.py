"""
Tests of the atom radii overlap calculator and its reports.
"""

import numpy as np
import pytest
from ase import Atoms
from ase.data import atomic_numbers, covalent_radii

from PQEval.calc.evaluators import EvaluatorFlag, EvaluatorType
from PQEval.calc.overlap import OverlapCalculator
from PQEval.calc.radii import AtomRadiiTable, CovalentRadiiTable, make_radii_table
from PQEval.geom.bonds import Bond
from PQEval.reports.summarize import overlap_table, site_table, summarize_overlaps

def total_overlap(atoms, radii):
    calc = OverlapCalculator(radii_table=radii)
    calc.set_evaluator_type(EvaluatorType.BASIC)
    calc(atoms)
    return calc.total_square_overlap()

class TestRadiiTables:
    """Test radius lookup."""

    def test_zero_table(self):
        """Test that the base table gives zero radii."""
        table = AtomRadiiTable()
        assert table.lookup('Na') == 0.0
        assert np.array_equal(table.lookup_many(['Na', 'Cl']), [0.0, 0.0])

    def test_custom_radii(self):
        """Test custom radii and their reset."""
        table = CovalentRadiiTable()
        t0 = table.ticker.copy()
        table.set_custom({'C': 0.5})
        assert table.ticker > t0
        assert table.lookup('C') == 0.5
        assert table.get_all_custom() == {'C': 0.5}
        table.reset_custom('C')
        assert table.lookup('C') == pytest.approx(covalent_radii[atomic_numbers['C']])
        assert table.get_all_custom() == {}

    def test_invalid_radii(self):
        """Test that negative radii and unknown elements are rejected."""
        with pytest.raises(ValueError):
            AtomRadiiTable({'Na': -1.0})
        with pytest.raises(ValueError):
            CovalentRadiiTable().lookup('Xx')
        with pytest.raises(ValueError):
            make_radii_table('vdw')

    def test_make_radii_table(self):
        """Test table construction from names and dicts."""
        assert isinstance(make_radii_table('covalent'), CovalentRadiiTable)
        assert type(make_radii_table(None)) is AtomRadiiTable
        table = make_radii_table({'Na': 1.0})
        assert table.lookup('Na') == 1.0
        assert make_radii_table(table) is table

class TestOverlapCalculator:
    """Test overlap values for simple arrangements."""

    def test_defaults(self):
        """Test the default evaluator setup of a new calculator."""
        calc = OverlapCalculator()
        assert calc.get_evaluator_type() is EvaluatorType.OPTIMIZED
        assert calc.get_evaluator_flag(EvaluatorFlag.USEFULLSUM)
        assert calc.get_evaluator_flag(EvaluatorFlag.FIXEDSITEINDEX)
        assert calc.count_sites() == 0
        assert calc.msoverlap() == 0.0
        assert calc.rmsoverlap() == 0.0

    def test_two_overlapping_sites(self, two_sites):
        """Test two sodium sites with radius 1 at distance 1.5."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        value = calc(two_sites(1.5))
        assert np.allclose(value, [0.25, 0.25])
        assert calc.total_square_overlap() == pytest.approx(0.25)
        assert calc.msoverlap() == pytest.approx(0.125)
        assert calc.rmsoverlap() == pytest.approx(np.sqrt(0.125))
        assert calc.get_rmax_used() == pytest.approx(2.0)
        assert np.allclose(calc.overlaps(), [0.5, 0.5])
        assert np.allclose(calc.distances(), [1.5, 1.5])
        assert sorted(zip(calc.sites0(), calc.sites1())) == [(0, 1), (1, 0)]
        for i0, direction in zip(calc.sites0(), calc.directions()):
            expected = [1.0, 0.0, 0.0] if i0 == 0 else [-1.0, 0.0, 0.0]
            assert np.allclose(direction, expected)

    def test_two_distant_sites(self, two_sites):
        """Test that sites beyond the radii sum do not overlap."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        value = calc(two_sites(3.0))
        assert np.array_equal(value, [0.0, 0.0])
        assert len(calc.overlaps()) == 0
        assert calc.directions().shape == (0, 3)
        assert calc.total_square_overlap() == 0.0

    def test_half_sum_two_sites(self, two_sites):
        """Test that half summation reports the same pairs."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc.set_evaluator_flag(EvaluatorFlag.USEFULLSUM, False)
        calc(two_sites(1.5))
        assert np.allclose(calc.value, [0.25, 0.25])
        assert len(calc.overlaps()) == 2

    def test_non_overlapping_records(self):
        """Test that close but non-overlapping pairs are kept as records."""
        atoms = Atoms('NaCl', positions=[(0, 0, 0), (1.9, 0, 0)])
        calc = OverlapCalculator(radii_table={'Na': 1.0, 'Cl': 0.8})
        calc(atoms)
        assert len(calc.overlaps()) == 0
        assert len(calc.records()) == 2
        assert all(r.overlap == pytest.approx(-0.1) for r in calc.records())

    def test_periodic_self_overlap(self):
        """Test a single site overlapping with its own periodic images."""
        atoms = Atoms('Na', positions=[(0, 0, 0)], cell=[3.0, 3.0, 3.0], pbc=True)
        calc = OverlapCalculator(radii_table={'Na': 1.6})
        calc(atoms)
        assert len(calc.overlaps()) == 6
        assert np.allclose(calc.overlaps(), 0.2)
        assert calc.total_square_overlap() == pytest.approx(0.12)
        assert np.allclose(calc.gradients(), 0.0)
        calc.set_evaluator_type("basic")
        calc.set_evaluator_flag(EvaluatorFlag.USEFULLSUM, False)
        calc(atoms)
        assert calc.total_square_overlap() == pytest.approx(0.12)

    def test_zero_radii(self, ion_cluster):
        """Test that the empty table gives no overlaps and zero cutoff."""
        calc = OverlapCalculator()
        value = calc(ion_cluster)
        assert np.array_equal(value, np.zeros(len(ion_cluster)))
        assert calc.get_rmax_used() == 0.0
        assert calc.records() == []

    def test_covalent_radii(self, two_sites):
        """Test evaluation with the covalent radii table."""
        calc = OverlapCalculator(radii_table='covalent')
        r = covalent_radii[atomic_numbers['Na']]
        calc(two_sites(r))
        assert np.allclose(calc.site_radii(), [r, r])
        assert calc.total_square_overlap() == pytest.approx(r ** 2)

    def test_radii_table_change(self, two_sites):
        """Test that replacing the radii table advances the ticker."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc(two_sites(1.5))
        t0 = calc.ticker.copy()
        calc.radii_table = {'Na': 1.25}
        assert calc.ticker > t0
        calc(two_sites(1.5))
        assert calc.get_evaluator_type_used() is EvaluatorType.BASIC
        assert calc.total_square_overlap() == pytest.approx(1.0)

    def test_invalid_scale(self, two_sites):
        """Test that only unit and double scales are accepted."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc.set_structure(two_sites(1.5))
        bond = Bond(0, 1, 1.5, np.array([1.5, 0.0, 0.0]))
        with pytest.raises(ValueError):
            calc.add_pair_contribution(bond, 3)

class TestFlipDiff:
    """Test differences for exchanged site radii."""

    @pytest.fixture
    def chain(self):
        return Atoms('NaClCl', positions=[(0, 0, 0), (1.2, 0, 0), (10.0, 0, 0)])

    def test_flip_decreases_overlap(self, chain, radii):
        """Test exchanging the sodium with a distant chlorine."""
        calc = OverlapCalculator(radii_table=radii)
        calc(chain)
        assert calc.total_square_overlap() == pytest.approx(0.36)
        assert calc.total_flip_diff(0, 2) == pytest.approx(-0.2)
        assert calc.total_flip_diff(2, 0) == pytest.approx(-0.2)

        flipped = chain.copy()
        flipped.set_chemical_symbols(['Cl', 'Cl', 'Na'])
        assert total_overlap(flipped, radii) == pytest.approx(
            calc.total_square_overlap() + calc.total_flip_diff(0, 2))

    def test_flip_same_radius(self, chain, radii):
        """Test that exchanging equal radii changes nothing."""
        calc = OverlapCalculator(radii_table=radii)
        calc(chain)
        assert calc.total_flip_diff(1, 2) == 0.0
        assert calc.total_flip_diff(0, 0) == 0.0

    def test_flip_creates_overlap(self, radii):
        """Test a flip that makes a close pair overlap."""
        atoms = Atoms('ClClNa', positions=[(0, 0, 0), (1.7, 0, 0), (10.0, 0, 0)])
        calc = OverlapCalculator(radii_table=radii)
        calc(atoms)
        assert calc.total_square_overlap() == 0.0
        assert calc.total_flip_diff(0, 2) == pytest.approx(0.01)

    def test_flip_diff_matches_recalculation(self, ion_cluster, radii):
        """Test flip differences against evaluation of the flipped structure."""
        calc = OverlapCalculator(radii_table=radii)
        calc(ion_cluster)
        total = calc.total_square_overlap()
        symbols = ion_cluster.get_chemical_symbols()
        for i, j in [(0, 1), (2, 5), (4, 11), (3, 6)]:
            flipped = ion_cluster.copy()
            swapped = list(symbols)
            swapped[i], swapped[j] = swapped[j], swapped[i]
            flipped.set_chemical_symbols(swapped)
            assert calc.total_flip_diff(i, j) == pytest.approx(
                total_overlap(flipped, radii) - total, abs=1e-12)

class TestGradients:
    """Test gradients of the total square overlap."""

    @pytest.mark.parametrize("usefullsum", [True, False])
    def test_finite_differences(self, ion_cluster, radii, usefullsum):
        """Test gradients against central finite differences."""
        calc = OverlapCalculator(radii_table=radii)
        calc.set_evaluator_flag(EvaluatorFlag.USEFULLSUM, usefullsum)
        calc(ion_cluster)
        gradients = calc.gradients()
        assert np.any(gradients != 0)

        h = 1e-6
        numeric = np.zeros_like(gradients)
        for k in range(len(ion_cluster)):
            for axis in range(3):
                plus = ion_cluster.copy()
                plus.positions[k, axis] += h
                minus = ion_cluster.copy()
                minus.positions[k, axis] -= h
                numeric[k, axis] = (total_overlap(plus, radii) -
                                    total_overlap(minus, radii)) / (2 * h)
        assert np.allclose(gradients, numeric, atol=1e-5)

    def test_two_sites_push_apart(self, two_sites):
        """Test that gradients point towards the other site."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc(two_sites(1.5))
        assert np.allclose(calc.gradients(), [[1.0, 0, 0], [-1.0, 0, 0]])

class TestReports:
    """Test overlap summaries and tables."""

    def test_summary(self, two_sites):
        """Test the aggregate statistics model."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc(two_sites(1.5))
        summary = summarize_overlaps(calc)
        assert summary.nsites == 2
        assert summary.npairs == 2
        assert summary.total_square_overlap == pytest.approx(0.25)
        assert summary.msoverlap == pytest.approx(0.125)
        assert summary.rmax_used == pytest.approx(2.0)

    def test_overlap_table(self, ion_cluster, radii):
        """Test ordering and truncation of the pair table."""
        calc = OverlapCalculator(radii_table=radii)
        calc(ion_cluster)
        table = overlap_table(calc)
        assert list(table.columns) == ['site0', 'site1', 'symbol0', 'symbol1',
                                       'distance', 'overlap']
        assert len(table) == len(calc.overlaps())
        assert table['overlap'].is_monotonic_decreasing
        assert len(overlap_table(calc, top_n=3)) == 3
        row = table.iloc[0]
        assert row['symbol0'] == ion_cluster[int(row['site0'])].symbol

    def test_empty_overlap_table(self, two_sites):
        """Test the pair table without overlaps."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc(two_sites(3.0))
        table = overlap_table(calc)
        assert table.empty
        assert 'overlap' in table.columns

    def test_site_table(self, two_sites):
        """Test the per-site table."""
        calc = OverlapCalculator(radii_table={'Na': 1.0})
        calc(two_sites(1.5))
        table = site_table(calc)
        assert list(table['symbol']) == ['Na', 'Na']
        assert np.allclose(table['radius'], 1.0)
        assert np.allclose(table['square_overlap'], 0.25)
        assert np.allclose(table['gradient'], 1.0)
