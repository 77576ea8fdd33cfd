"""
Overlap tables and summaries.
"""

import numpy as np
import pandas as pd

from ..models.datatypes import OverlapSummary

def summarize_overlaps(calc) -> OverlapSummary:
    """Aggregate statistics of an evaluated OverlapCalculator."""
    return OverlapSummary(
        nsites=calc.count_sites(),
        npairs=len(calc.overlaps()),
        total_square_overlap=calc.total_square_overlap(),
        msoverlap=calc.msoverlap(),
        rmsoverlap=calc.rmsoverlap(),
        rmax_used=calc.get_rmax_used(),
    )

def overlap_table(calc, top_n: int = None) -> pd.DataFrame:
    """Table of overlapping pairs sorted by decreasing overlap."""
    columns = ['site0', 'site1', 'symbol0', 'symbol1', 'distance', 'overlap']
    symbols = calc.structure.symbols
    sites0 = calc.sites0()
    sites1 = calc.sites1()

    if len(sites0) == 0:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame({
        'site0': sites0,
        'site1': sites1,
        'symbol0': [symbols[i] for i in sites0],
        'symbol1': [symbols[i] for i in sites1],
        'distance': calc.distances(),
        'overlap': calc.overlaps(),
    })
    df = df.sort_values('overlap', ascending=False, kind='stable')
    df = df.reset_index(drop=True)
    if top_n is not None:
        df = df.head(top_n)
    return df

def site_table(calc) -> pd.DataFrame:
    """Per-site radius, square overlap and gradient magnitude."""
    return pd.DataFrame({
        'symbol': calc.structure.symbols,
        'radius': calc.site_radii(),
        'square_overlap': calc.site_square_overlaps(),
        'gradient': np.linalg.norm(calc.gradients(), axis=1),
    })
