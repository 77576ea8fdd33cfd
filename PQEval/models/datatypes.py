"""
Pydantic data models for PQEval package.
"""

from pydantic import BaseModel, Field
from typing import List, Tuple

class OverlapRecord(BaseModel):
    """One generated site pair closer than the overlap cutoff."""
    site0: int
    site1: int
    distance: float                         # Å
    r01: Tuple[float, float, float]         # Å, from site0 to site1
    overlap: float                          # Å, r0 + r1 - distance, may be <= 0
    weight: int = 1                         # -1 cancels a record of another partition

class PartitionData(BaseModel):
    """Partial result of one parallel partition."""
    cpu_index: int
    ncpu: int
    values: List[float]
    records: List[OverlapRecord] = Field(default_factory=list)

class OverlapSummary(BaseModel):
    """Aggregate overlap statistics of one structure."""
    nsites: int
    npairs: int                             # overlapping ordered pairs
    total_square_overlap: float             # Å^2
    msoverlap: float                        # Å^2
    rmsoverlap: float                       # Å
    rmax_used: float                        # Å
