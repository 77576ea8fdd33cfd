"""
Parallel evaluation of pair quantities over worker partitions.
"""

import concurrent.futures
import copy
import itertools
import multiprocessing
from typing import List, Callable, Any, Optional
import time

from ..geom.structure import as_structure

_merge_keys = itertools.count()

class ProgressReporter:
    """Simple progress reporter for parallel tasks."""

    def __init__(self, total: int, description: str = "Processing",
                 verbose: bool = True):
        self.total = total
        self.completed = 0
        self.description = description
        self.verbose = verbose
        self.start_time = time.time()

    def update(self, n: int = 1):
        """Update progress by n steps."""
        self.completed += n
        if not self.verbose:
            return
        elapsed = time.time() - self.start_time

        if self.total > 0:
            progress = self.completed / self.total
            print(f"\r{self.description}: {self.completed}/{self.total} "
                  f"({progress*100:.1f}%) - {elapsed:.1f}s elapsed",
                  end="", flush=True)
        else:
            print(f"\r{self.description}: {self.completed} completed - "
                  f"{elapsed:.1f}s elapsed", end="", flush=True)

    def finish(self):
        """Mark progress as finished."""
        if not self.verbose:
            return
        elapsed = time.time() - self.start_time
        print(f"\n{self.description} completed in {elapsed:.1f}s")

def run_parallel(func: Callable, tasks: List[Any], max_workers: Optional[int] = None,
                 description: str = "Processing", verbose: bool = False) -> List[Any]:
    """
    Run function on tasks in parallel using ThreadPoolExecutor.

    Args:
        func: Function to apply to each task
        tasks: List of arguments to pass to func
        max_workers: Maximum number of worker threads
        description: Description for progress reporting
        verbose: Print progress lines

    Returns:
        List of results in same order as tasks

    Raises:
        The first exception raised by any task, after all tasks finished.
    """
    if not tasks:
        return []
    if max_workers is None:
        max_workers = min(len(tasks), multiprocessing.cpu_count())

    progress = ProgressReporter(len(tasks), description, verbose)
    result_dict = {}
    errors = {}

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_task = {executor.submit(func, task): i for i, task in enumerate(tasks)}

        for future in concurrent.futures.as_completed(future_to_task):
            task_index = future_to_task[future]
            try:
                result_dict[task_index] = future.result()
            except Exception as e:
                print(f"\nWarning: Task {task_index} failed with error: {e}")
                errors[task_index] = e
            progress.update(1)

    progress.finish()
    if errors:
        raise errors[min(errors)]
    return [result_dict[i] for i in range(len(tasks))]

def evaluate_parallel(quantity, structure, ncpu: int,
                      max_workers: Optional[int] = None,
                      verbose: bool = False):
    """
    Evaluate quantity for structure split over ncpu partitions.

    Every partition runs on a private copy of the quantity with its
    evaluator restricted to one slice of the work units.  The partial
    results are merged back into quantity.

    Args:
        quantity: Configured PairQuantity, receives the merged value
        structure: Structure adapter or ASE Atoms
        ncpu: Number of partitions
        max_workers: Maximum number of worker threads
        verbose: Print progress lines

    Returns:
        Merged quantity value

    Raises:
        ValueError: if ncpu is smaller than 1
    """
    if ncpu < 1:
        raise ValueError(f"Number of CPUs ncpu must be at least 1, got {ncpu}.")
    structure = as_structure(structure)
    if ncpu == 1:
        return quantity.eval(structure)

    partitions = []
    for cpu_index in range(ncpu):
        q = copy.deepcopy(quantity)
        q.setup_parallel_run(cpu_index, ncpu)
        partitions.append(q)

    def run_partition(q):
        q.eval(structure)
        return q.get_parallel_data()

    results = run_parallel(run_partition, partitions, max_workers=max_workers,
                           description="Evaluating partitions", verbose=verbose)

    quantity.set_structure(structure)
    key = f"parallel-{next(_merge_keys)}"
    for data in results:
        quantity.accumulate_parallel_data(data, key)
    return quantity.finish_parallel_merge(key)
