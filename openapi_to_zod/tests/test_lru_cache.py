import unittest

import pytest

from openapi_to_zod.lru_cache import LRUCache


class TestLRUCache(unittest.TestCase):
    def test_evicts_least_recently_used(self):
        cache = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        self.assertTrue(cache.has("a"))
        self.assertFalse(cache.has("b"))
        self.assertTrue(cache.has("c"))

    def test_overwrite_refreshes_without_growing(self):
        cache = LRUCache(2)
        cache.set("a", 1)
        cache.set("a", 2)
        self.assertEqual(cache.size(), 1)
        self.assertEqual(cache.get("a"), 2)

    def test_missing_key(self):
        cache = LRUCache(1)
        self.assertIsNone(cache.get("missing"))
        self.assertNotIn("missing", cache)

    def test_clear(self):
        cache = LRUCache(3)
        cache.set("a", 1)
        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            LRUCache(0)


if __name__ == "__main__":
    pytest.main([__file__])
