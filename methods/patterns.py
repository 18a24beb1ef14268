#!/usr/bin/env python
# coding: utf-8

from itertools import product

import numpy as np


def as_pattern(pattern, length=None):
    '''
    Coerce an occupancy pattern (any sequence of truthy values, or a '0101' string) to a bool array.
    If a length is given, the pattern must have exactly that many bins.
    '''
    if isinstance(pattern, str):
        pattern = parse_pattern(pattern)
    b = np.asarray(pattern, dtype=bool)
    if b.ndim != 1:
        raise ValueError(f"An occupancy pattern must be one-dimensional, got shape {b.shape}.")
    if length is not None and len(b) != length:
        raise ValueError(f"Pattern has {len(b)} bins but the distribution has {length}.")
    return b

def count_set(pattern):
    '''Number of bins that must receive at least one draw.'''
    return int(np.count_nonzero(pattern))

def pattern_string(pattern):
    '''Render a pattern as a string of 0s and 1s, bin 0 first.'''
    return ''.join('1' if bit else '0' for bit in pattern)

def parse_pattern(text):
    '''Inverse of pattern_string.'''
    if any(ch not in '01' for ch in text):
        raise ValueError(f"Pattern strings may only contain '0' and '1', got {text!r}.")
    return np.array([ch == '1' for ch in text], dtype=bool)

def all_patterns(L):
    '''
    Enumerate all 2^L occupancy patterns of length L.
    Only sensible for small L.
    '''
    for bits in product((False, True), repeat=L):
        yield np.array(bits, dtype=bool)
