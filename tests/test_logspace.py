import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from scipy.special import gammaln, logsumexp

from numerical.logspace import (
    LogFactorialCache,
    default_cache,
    NumericalInvariantError,
    log_binomial,
    log_binomials,
    log_sum_exp,
    stirling_log_binomial,
)


def test_log_binomial_small_values():
    assert log_binomial(10, 3) == pytest.approx(math.log(120))
    assert log_binomial(5, 0) == 0.0
    assert log_binomial(5, 5) == 0.0
    assert log_binomial(0, 0) == 0.0


def test_log_binomial_out_of_range_k_is_negative_infinity():
    assert log_binomial(10, -1) == -np.inf
    assert log_binomial(10, 11) == -np.inf


def test_log_binomial_rejects_negative_population():
    with pytest.raises(ValueError):
        log_binomial(-1, 0)


def test_log_binomial_matches_gammaln():
    for n in range(0, 60, 7):
        for k in range(0, n + 1):
            expected = gammaln(n + 1) - gammaln(k + 1) - gammaln(n - k + 1)
            assert log_binomial(n, k) == pytest.approx(expected, rel=1e-10, abs=1e-10)


def test_log_binomial_large_n():
    n, k = 5000, 1700
    expected = gammaln(n + 1) - gammaln(k + 1) - gammaln(n - k + 1)
    assert log_binomial(n, k) == pytest.approx(expected, rel=1e-10)


def test_log_binomials_matches_scalar():
    ks = np.arange(-2, 14)
    row = log_binomials(11, ks)
    for k, value in zip(ks, row):
        assert value == pytest.approx(log_binomial(11, int(k)))


def test_cache_starts_with_zero_factorial_and_grows():
    cache = LogFactorialCache()
    assert cache.size == 1
    assert cache.log_factorial(0) == 0.0
    assert cache.log_factorial(6) == pytest.approx(math.log(720))
    assert cache.size == 7
    before = cache.table(6).copy()
    cache.log_factorial(40)
    assert cache.size == 41
    # existing entries are never rewritten
    np.testing.assert_array_equal(cache.table(6)[:7], before)
    # asking for a smaller n does not shrink it
    cache.log_factorial(3)
    assert cache.size == 41


def test_cache_rejects_negative():
    with pytest.raises(ValueError):
        LogFactorialCache().log_factorial(-1)


def test_log_binomial_uses_given_cache():
    cache = LogFactorialCache()
    log_binomial(25, 4, cache=cache)
    assert cache.size == 26


def test_cache_concurrent_growth_is_consistent():
    cache = LogFactorialCache()
    sizes = [50, 400, 10, 1000, 250, 999, 3, 700] * 4
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda n: cache.log_factorial(n), sizes))
    for n, value in zip(sizes, results):
        assert value == pytest.approx(gammaln(n + 1), rel=1e-10)
    assert cache.size == 1001
    np.testing.assert_allclose(cache.table(1000), gammaln(np.arange(1001) + 1), rtol=1e-10)


def test_stirling_close_to_exact_for_large_n():
    for n, k in [(1000, 100), (1000, 300), (10000, 3000)]:
        exact = log_binomial(n, k)
        approx = stirling_log_binomial(n, k)
        assert approx >= exact
        assert (approx - exact) / exact < 0.02


def test_stirling_edges():
    assert stirling_log_binomial(10, 0) == 0.0
    assert stirling_log_binomial(10, 10) == 0.0
    assert stirling_log_binomial(2, 1) == pytest.approx(2 * math.log(2))
    with pytest.raises(ValueError):
        stirling_log_binomial(0, 0)
    with pytest.warns(UserWarning):
        assert np.isnan(stirling_log_binomial(10, 11))


def test_log_sum_exp_basic():
    assert log_sum_exp([0, 0]) == pytest.approx(math.log(2))
    assert log_sum_exp([5]) == 5
    assert log_sum_exp([-np.inf, -np.inf]) == -np.inf
    assert log_sum_exp([-np.inf, 3.0]) == pytest.approx(3.0)


def test_log_sum_exp_positive_infinity():
    assert log_sum_exp([1.0, np.inf, -np.inf]) == np.inf


def test_log_sum_exp_large_and_small_magnitudes():
    assert log_sum_exp([1000.0, 1000.0]) == pytest.approx(1000 + math.log(2))
    assert log_sum_exp([-1000.0, -1000.0]) == pytest.approx(-1000 + math.log(2))
    values = np.array([-750.2, -751.0, -760.5, -np.inf])
    assert log_sum_exp(values) == pytest.approx(logsumexp(values))


def test_log_sum_exp_accepts_generators():
    assert log_sum_exp(x for x in (0.0, 0.0, 0.0)) == pytest.approx(math.log(3))


def test_log_sum_exp_empty():
    with pytest.raises(ValueError):
        log_sum_exp([])


def test_log_sum_exp_nan_raises():
    with pytest.raises(NumericalInvariantError, match="nan"):
        log_sum_exp([0.0, np.nan])


def test_module_cache_is_shared():
    log_binomial(321, 5)
    assert default_cache().size >= 322
    assert default_cache().log_factorial(321) == pytest.approx(gammaln(322), rel=1e-10)
