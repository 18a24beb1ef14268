"""
logspace.py - Log-space arithmetic primitives

Probabilities in the occupancy computations get very small very quickly
(c draws over L bins multiply c weights together), so everything is carried
as natural logarithms and combined with the primitives below:

    log C(n, k) = log n! - log k! - log (n-k)!      (exact, cached factorials)

    log C(n, k) ≈ -n [e log e + (1-e) log(1-e)],  e = k/n   (entropy form)

    log Σ exp(x_i) = m + log Σ exp(x_i - m),  m = max x_i

The log-factorial table is held by a LogFactorialCache object. It only ever
grows: a longer table is built off to the side and then published by
swapping the reference, so a concurrent reader always sees a complete table.
"""

import threading
import warnings
from typing import Iterable, Optional

import numpy as np


class NumericalInvariantError(ArithmeticError):
    """A log-space reduction produced NaN."""


# =============================================================================
# Log-factorial cache
# =============================================================================

class LogFactorialCache:
    """
    Monotonically growing table of log(i!) for i = 0..size-1.

    Readers grab the current array reference and index into it without
    locking. Writers build an extended copy and publish it under a lock,
    so two threads extending at once never lose entries.
    """

    def __init__(self):
        self._table = np.zeros(1)   # log(0!) = 0
        self._table.setflags(write=False)
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return len(self._table)

    def table(self, n: int) -> np.ndarray:
        """Return a published table that covers index n."""
        table = self._table
        if len(table) > n:
            return table
        with self._lock:
            table = self._table
            if len(table) <= n:
                start = len(table)
                steps = np.log(np.arange(start, n + 1, dtype=float))
                extended = np.empty(n + 1)
                extended[:start] = table
                extended[start:] = table[-1] + np.cumsum(steps)
                extended.setflags(write=False)
                self._table = extended
                table = extended
        return table

    def log_factorial(self, n: int) -> float:
        if n < 0:
            raise ValueError(f"log_factorial needs n >= 0, got n={n}")
        return float(self.table(n)[n])


_default_cache = LogFactorialCache()


def default_cache() -> LogFactorialCache:
    return _default_cache


# =============================================================================
# Binomial coefficients
# =============================================================================

def log_binomial(n: int, k: int, cache: Optional[LogFactorialCache] = None) -> float:
    """
    Log of the binomial coefficient n choose k.

    Parameters
    ----------
    n : int
        Population size, must be >= 0
    k : int
        Number of items selected
    cache : LogFactorialCache, optional
        Table to read log-factorials from (the shared module table if None)

    Returns
    -------
    float
        log C(n, k), or -inf when k < 0 or k > n
    """
    if n < 0:
        raise ValueError(f"Population size must be non-negative, got n={n}")
    if k < 0 or k > n:
        return -np.inf
    if cache is None:
        cache = _default_cache
    lf = cache.table(n)
    return float(lf[n] - lf[k] - lf[n - k])


def log_binomials(n: int, ks: np.ndarray, cache: Optional[LogFactorialCache] = None) -> np.ndarray:
    """
    Vectorised log_binomial over an array of k for a fixed n.
    Entries with k outside [0, n] are -inf.
    """
    if n < 0:
        raise ValueError(f"Population size must be non-negative, got n={n}")
    if cache is None:
        cache = _default_cache
    ks = np.asarray(ks, dtype=int)
    lf = cache.table(n)
    out = np.full(ks.shape, -np.inf)
    valid = (ks >= 0) & (ks <= n)
    k = ks[valid]
    out[valid] = lf[n] - lf[k] - lf[n - k]
    return out


def stirling_log_binomial(n: int, k: int) -> float:
    """
    Entropy (Stirling) approximation to log C(n, k) for large n and k.

    Drops the O(log n) terms, so it overestimates the exact value; the
    relative error shrinks as n grows. Not used by the exact occupancy code.
    """
    if n <= 0:
        raise ValueError(f"Population size must be positive, got n={n}")
    if k < 0 or k > n:
        warnings.warn(f"stirling_log_binomial: k={k} outside [0, {n}], returning nan")
        return np.nan
    if k == 0 or k == n:
        return 0.0
    e = k / n
    return float(-n * (e * np.log(e) + (1 - e) * np.log(1 - e)))


# =============================================================================
# Log-sum-exp
# =============================================================================

def log_sum_exp(values: Iterable[float]) -> float:
    """
    Stable log(Σ exp(values)).

    If the maximum is infinite (all terms -inf, or any term +inf) it is
    returned directly, since subtracting it would give inf - inf = nan.

    Raises
    ------
    ValueError
        If `values` is empty
    NumericalInvariantError
        If the result is nan (a nan slipped into the inputs)
    """
    a = np.fromiter(values, dtype=float)
    if a.size == 0:
        raise ValueError("log_sum_exp of an empty sequence")
    a_max = np.max(a)
    if np.isinf(a_max):
        return float(a_max)
    result = float(np.log(np.sum(np.exp(a - a_max))) + a_max)
    if np.isnan(result):
        raise NumericalInvariantError(f"log_sum_exp({', '.join(map(str, a))}) = nan")
    return result
