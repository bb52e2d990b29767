"""
Tests for hash spreading and table size rounding.
"""

import os
import sys
import inspect

currentdir = os.path.dirname(os.path.abspath(inspect.getfile(inspect.currentframe())))
parentdir = os.path.dirname(currentdir)
sys.path.insert(0, parentdir)

import unittest
from hypothesis import given, strategies as st

from containers import MAXIMUM_CAPACITY, spread_hash, table_size_for


class TestSpreadHash(unittest.TestCase):
    def test_none_hashes_to_zero(self):
        self.assertEqual(0, spread_hash(None))

    def test_small_ints_are_unchanged(self):
        for key in (0, 1, 5, 16, 32, 48, 64, 0xFFFF):
            self.assertEqual(key, spread_hash(key))

    def test_high_bits_fold_into_low_bits(self):
        self.assertEqual(0x1234444C, spread_hash(0x12345678))
        self.assertEqual(0x10001, spread_hash(1 << 16))

    def test_negative_hash_is_truncated_to_32_bits(self):
        # hash(-1) is -2 in CPython
        self.assertEqual(0xFFFF0001, spread_hash(-1))

    def test_equal_keys_hash_equal(self):
        self.assertEqual(spread_hash("test"), spread_hash("te" + "st"))
        self.assertEqual(spread_hash(1), spread_hash(1.0))

    def test_unhashable_key_raises_type_error(self):
        with self.assertRaises(TypeError):
            spread_hash([1, 2])

    @given(st.one_of(st.integers(), st.text(), st.floats(allow_nan=False)))
    def test_result_fits_in_32_bits(self, key):
        h = spread_hash(key)
        self.assertGreaterEqual(h, 0)
        self.assertLess(h, 1 << 32)


class TestTableSizeFor(unittest.TestCase):
    def test_tiny_requests_round_to_four(self):
        self.assertEqual(4, table_size_for(0))
        self.assertEqual(4, table_size_for(1))

    def test_powers_of_two_are_kept(self):
        self.assertEqual(2, table_size_for(2))
        self.assertEqual(16, table_size_for(16))
        self.assertEqual(1 << 20, table_size_for(1 << 20))

    def test_rounds_up(self):
        self.assertEqual(4, table_size_for(3))
        self.assertEqual(32, table_size_for(17))
        self.assertEqual(256, table_size_for(200))

    def test_capped_at_maximum(self):
        self.assertEqual(MAXIMUM_CAPACITY, table_size_for((1 << 31) - 1))
        self.assertEqual(MAXIMUM_CAPACITY, table_size_for(MAXIMUM_CAPACITY))
        self.assertEqual(MAXIMUM_CAPACITY, table_size_for(MAXIMUM_CAPACITY + 1))

    def test_custom_maximum(self):
        self.assertEqual(8, table_size_for(100, maximum=8))
        self.assertEqual(4, table_size_for(3, maximum=8))

    @given(st.integers(min_value=2, max_value=MAXIMUM_CAPACITY))
    def test_smallest_power_of_two_at_least_request(self, cap):
        n = table_size_for(cap)
        self.assertEqual(0, n & (n - 1))
        self.assertGreaterEqual(n, cap)
        self.assertLess(n // 2, cap)


if __name__ == "__main__":
    unittest.main()
