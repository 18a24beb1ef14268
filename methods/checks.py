#!/usr/bin/env python
# coding: utf-8

import numpy as np
import pandas as pd
from scipy import stats
from tqdm import tqdm

from methods.patterns import pattern_string
from numerical.logspace import log_binomial, stirling_log_binomial


def stirling_comparison(pairs):
    '''
    Exact log C(n,k) next to its entropy approximation, one row per (n, k) pair.
    '''
    rows = []
    for n, k in pairs:
        exact = log_binomial(n, k)
        approx = stirling_log_binomial(n, k)
        rows.append({'n': n, 'k': k, 'exact': exact, 'stirling': approx, 'rel_error': (approx - exact) / exact if exact else np.nan})
    return pd.DataFrame(rows, columns=['n', 'k', 'exact', 'stirling', 'rel_error'])

def sampling_check(model, count, trials=20, resample=100_000, rng=None, method='dp', confidence=0.95, progress=True):
    '''
    Compare computed occupancy probabilities against sampled frequencies.

    Each trial draws a target pattern with `count` draws, computes its probability,
    then resamples `resample` patterns and counts exact matches. The z-score uses the
    binomial standard error of the computed probability; 'within' marks |z| under the
    two-sided bound for the given confidence.
    '''
    if rng is None:
        rng = np.random.default_rng()
    z_bound = stats.norm.ppf(0.5 + confidence / 2)
    rows = []
    for _ in tqdm(range(trials), disable=not progress, desc='trials'):
        target = model.sample(count, rng)
        calc = np.exp(model.log_probability(target, count, method=method))
        hits = sum(np.array_equal(model.sample(count, rng), target) for _ in range(resample))
        sampled = hits / resample
        stddev = np.sqrt(calc * (1 - calc) / resample)
        z = (sampled - calc) / stddev if stddev > 0 else 0.0
        rows.append({'pattern': pattern_string(target), 'calc': calc, 'sample': sampled,
                     'z': z, 'within': abs(z) <= z_bound})
    return pd.DataFrame(rows, columns=['pattern', 'calc', 'sample', 'z', 'within'])
