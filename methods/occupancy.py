#!/usr/bin/env python
# coding: utf-8

"""
Occupancy probabilities for c independent categorical draws over L bins.

The question answered here is: after c draws, what is the probability that
the set of bins holding at least one draw is exactly a given pattern?
For a pattern with set bins S this is

    P(S | c) = Σ over counts (n_i)_{i∈S}, n_i >= 1, Σ n_i = c of
               c! / Π n_i!  ·  Π p_i^{n_i}

which is evaluated in log space by one of two strategies:
    - 'recursive': walks the bins front to back, enumerating every count for
      each set bin. Exponential; kept as a cross-check for tiny inputs.
    - 'dp': folds the set bins back to front into a table indexed by the
      number of draws used so far. O(L c^2).
"""

import numpy as np

from methods.patterns import as_pattern, count_set, pattern_string, all_patterns
from numerical.logspace import NumericalInvariantError, log_binomial, log_binomials, log_sum_exp


class OutOfRangeError(ValueError):
    """A weight cannot define a valid categorical distribution."""


class OccupancyModel:
    '''
    A fixed categorical distribution over L bins.
    Weights are normalized to sum to 1 at construction and never change afterwards.
    '''

    def __init__(self, weights):
        if weights is None:
            raise ValueError("The weights must have some values.")
        w = np.asarray(weights, dtype=float)
        if w.ndim != 1 or len(w) == 0:
            raise ValueError("The weights must be a non-empty one-dimensional sequence.")
        probs = w / np.sum(w)
        for i, (raw, p) in enumerate(zip(w, probs)):
            if not (raw > 0 and p > 0 and np.isfinite(p)):
                raise OutOfRangeError(f"Probability[{i}] = {raw} normalized to non-positive number {p}.")
        self._probs = probs
        self._log_probs = np.log(probs)
        self._probs.setflags(write=False)
        self._log_probs.setflags(write=False)

    @classmethod
    def create(cls, weights):
        return cls(weights)

    def __len__(self):
        return len(self._probs)

    def __repr__(self):
        return f"OccupancyModel({np.array2string(self._probs, precision=4)})"

    @property
    def length(self):
        return len(self._probs)

    @property
    def probs(self):
        return self._probs

    @property
    def log_probs(self):
        return self._log_probs

    def log_probability(self, pattern, c, method='dp'):
        '''
        Log probability that c draws occupy exactly the set bins of `pattern`.
        Returns -inf for impossible combinations (e.g. c smaller than the number of set bins).
        '''
        b = as_pattern(pattern, self.length)
        c = int(c)
        if c < 0:
            raise ValueError(f"The number of draws must be >= 0, got c={c}.")
        try:
            strategy = LOG_P_METHODS[method]
        except KeyError:
            raise ValueError(f"Unknown method '{method}', choose from {sorted(LOG_P_METHODS)}.") from None
        return strategy(self, b, c)

    def pattern_log_probabilities(self, c, method='dp'):
        '''
        Log probability of every one of the 2^L patterns for c draws, keyed by pattern string.
        Only sensible for small L.
        '''
        return {pattern_string(b): self.log_probability(b, c, method=method)
                for b in all_patterns(self.length)}

    def sample(self, c, rng=None):
        '''
        Draw c values from the distribution and return which bins were hit.
        Pass a numpy Generator for reproducible draws; otherwise a fresh unseeded one is made.
        '''
        if c < 0:
            raise ValueError(f"The number of draws must be >= 0, got c={c}.")
        if rng is None:
            rng = np.random.default_rng()
        probs = self._probs
        L = len(probs)
        b = np.zeros(L, dtype=bool)
        for _ in range(c):
            u = rng.random()
            idx = 0
            while idx < L and u >= probs[idx]:
                u -= probs[idx]
                idx += 1
            # rounding in the running subtraction can walk off the end
            b[min(idx, L - 1)] = True
        return b


# =============================================================================
# Strategies
# =============================================================================

def log_p_recursive(model, pattern, c):
    '''
    Reference strategy: recurse over the bins in order, trying every count for each set bin.
    Exponential in the number of set bins; use only to cross-check log_p_dp.
    '''
    return _log_p_from(model.log_probs, pattern, c, count_set(pattern), 0)

def _log_p_from(log_probs, b, c, still_set, i):
    # still_set counts the set bins in b[i:]
    L = len(b)
    while i < L and not b[i]:
        i += 1
    if i >= L:
        return 0.0 if c == 0 else -np.inf
    # The other still_set - 1 bins need at least one draw each,
    # so this bin can take at most c - (still_set - 1).
    values = [log_binomial(c, j) + j * log_probs[i] + _log_p_from(log_probs, b, c - j, still_set - 1, i + 1)
              for j in range(1, c - still_set + 2)]
    if not values:
        return -np.inf
    try:
        return log_sum_exp(values)
    except NumericalInvariantError as err:
        raise NumericalInvariantError(f"{err} for c={c}, i={i}") from err

def log_p_dp(model, pattern, c):
    '''
    Dynamic program over suffixes of the bins.

    forward[cc] holds the log probability that the bins after i, taken on
    their own, are realized exactly by cc draws. Unset bins take zero draws
    and leave the table alone. A set bin i takes j >= 1 of the cc draws:

        new[cc] = logsumexp_j ( log C(cc, j) + j log p_i + forward[cc - j] )

    with new[0] = -inf. After the first bin, forward[c] is the answer.
    '''
    log_probs = model.log_probs
    forward = np.full(c + 1, -np.inf)
    forward[0] = 0.0
    for i in range(len(pattern) - 1, -1, -1):
        if not pattern[i]:
            continue
        current = np.full(c + 1, -np.inf)
        for cc in range(1, c + 1):
            j = np.arange(1, cc + 1)
            terms = log_binomials(cc, j) + j * log_probs[i] + forward[cc - j]
            try:
                current[cc] = log_sum_exp(terms)
            except NumericalInvariantError as err:
                raise NumericalInvariantError(f"{err} for cc={cc}, i={i}") from err
        forward = current
    return float(forward[c])


LOG_P_METHODS = {
    'dp': log_p_dp,
    'recursive': log_p_recursive,
}
