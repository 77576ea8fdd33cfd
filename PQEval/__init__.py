"""
PQEval: Pair-Quantity Evaluation

A Python package for sums over pairs of sites in atomic structures, with
from-scratch, incremental and partitioned evaluation, and an atom radii
overlap calculator for detecting unphysical collisions in crystal structures.
"""

__version__ = "0.1.0"
__author__ = "PQEval Development Team"

from .models.datatypes import OverlapRecord, PartitionData, OverlapSummary

from .geom.structure import AtomsStructure, as_structure
from .geom.difference import DiffMethod, StructureDifference
from .calc.evaluators import (
    EvaluatorType, EvaluatorFlag, BasicEvaluator, OptimizedEvaluator,
    create_evaluator
)
from .calc.quantity import PairQuantity
from .calc.radii import AtomRadiiTable, CovalentRadiiTable, make_radii_table
from .calc.overlap import OverlapCalculator, make_overlap_calculator
from .orchestrators.runners import evaluate_parallel

__all__ = [
    "OverlapRecord", "PartitionData", "OverlapSummary",
    "AtomsStructure", "as_structure", "DiffMethod", "StructureDifference",
    "EvaluatorType", "EvaluatorFlag", "BasicEvaluator", "OptimizedEvaluator",
    "create_evaluator", "PairQuantity",
    "AtomRadiiTable", "CovalentRadiiTable", "make_radii_table",
    "OverlapCalculator", "make_overlap_calculator", "evaluate_parallel"
]
