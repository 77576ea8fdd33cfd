#!/usr/bin/env python3
"""
Example usage of PQEval package for atom radii overlap analysis.

This script demonstrates the basic workflow:
1. Build a rock salt crystal with a displaced ion
2. Evaluate overlaps with the optimized evaluator
3. Move sites and update the result incrementally
4. Evaluate in parallel partitions and report
"""

import numpy as np
from ase.build import bulk

# Import PQEval components
from PQEval import (
    EvaluatorFlag, EvaluatorType, OverlapCalculator, evaluate_parallel
)
from PQEval.reports.summarize import overlap_table, summarize_overlaps

def create_example_structure():
    """Create a NaCl supercell with one sodium pushed towards its neighbor."""

    atoms = bulk('NaCl', 'rocksalt', a=5.64).repeat((2, 2, 2))
    atoms.positions[0] += [0.6, 0.0, 0.0]
    return atoms

def main():
    """Run example PQEval calculation."""

    print("PQEval Example: Atom Radii Overlaps")
    print("=" * 50)

    # Step 1: Build structure
    print("1. Building rock salt supercell...")
    atoms = create_example_structure()
    print(f"   Structure: {len(atoms)} sites, formula {atoms.get_chemical_formula()}")

    # Step 2: Evaluate overlaps
    print("\n2. Evaluating overlaps...")
    calc = OverlapCalculator(radii_table={'Na': 1.5, 'Cl': 1.45})
    calc(atoms)
    print(f"   Evaluator used: {calc.get_evaluator_type_used().name}")
    print(f"   Total square overlap: {calc.total_square_overlap():.4f} Å²")
    print(f"   RMS overlap: {calc.rmsoverlap():.4f} Å")

    # Step 3: Incremental updates
    print("\n3. Moving the displaced ion back in small steps...")
    for step in range(3):
        atoms.positions[0] -= [0.2, 0.0, 0.0]
        calc(atoms)
        print(f"   Step {step + 1}: {calc.get_evaluator_type_used().name:9s} "
              f"total={calc.total_square_overlap():.4f} Å²")

    # Step 4: Cost of exchanging two sites
    print("\n4. Overlap change for exchanging site radii...")
    for i, j in [(0, 1), (0, 3)]:
        print(f"   Flip {i} <-> {j}: {calc.total_flip_diff(i, j):+.4f} Å²")

    # Step 5: Parallel evaluation
    print("\n5. Evaluating in 4 partitions...")
    atoms.positions[0] += [0.6, 0.0, 0.0]
    parallel = OverlapCalculator(radii_table={'Na': 1.5, 'Cl': 1.45})
    parallel.set_evaluator_flag(EvaluatorFlag.USEFULLSUM, False)
    evaluate_parallel(parallel, atoms, ncpu=4, verbose=True)

    serial = OverlapCalculator(radii_table={'Na': 1.5, 'Cl': 1.45})
    serial.set_evaluator_type(EvaluatorType.BASIC)
    serial(atoms)
    print(f"   Matches serial result: {np.allclose(parallel.value, serial.value)}")

    # Step 6: Report
    summary = summarize_overlaps(parallel)
    print(f"\n6. Results summary:")
    print(f"   Overlapping pairs: {summary.npairs}")
    print(f"   Mean square overlap: {summary.msoverlap:.4f} Å²")
    print(f"   Cutoff used: {summary.rmax_used:.2f} Å")
    print(f"\n   Top overlaps:")
    print(overlap_table(parallel, top_n=5).to_string(index=False))

    print(f"\n✓ PQEval example completed successfully!")

if __name__ == "__main__":
    main()
