"""
Unit tests for collision_ledger.py
Tests contact counting and tag bookkeeping.
"""

import unittest

# Import module under test
from collision_ledger import CollisionLedger, LedgerError, LANDING_PAD_TAG, GROUND_TAG


class TestCollisionLedger(unittest.TestCase):
    """Test collision begin/end bookkeeping"""

    def setUp(self):
        self.ledger = CollisionLedger()

    def test_starts_empty(self):
        self.assertEqual(self.ledger.count, 0)
        self.assertEqual(self.ledger.tags, [])
        self.assertFalse(self.ledger.is_colliding())

    def test_add_collision(self):
        self.ledger.add_collision(LANDING_PAD_TAG)
        self.assertEqual(self.ledger.count, 1)
        self.assertTrue(self.ledger.is_colliding())
        self.assertTrue(self.ledger.has_tag(LANDING_PAD_TAG))
        self.assertFalse(self.ledger.has_tag(GROUND_TAG))

    def test_duplicate_tags_counted(self):
        """Two legs on the pad are two contacts"""
        self.ledger.add_collision(LANDING_PAD_TAG)
        self.ledger.add_collision(LANDING_PAD_TAG)
        self.assertEqual(self.ledger.count, 2)

        self.ledger.remove_collision(LANDING_PAD_TAG)
        self.assertEqual(self.ledger.count, 1)
        self.assertTrue(self.ledger.has_tag(LANDING_PAD_TAG))

    def test_remove_collision(self):
        self.ledger.add_collision(GROUND_TAG)
        self.ledger.add_collision(LANDING_PAD_TAG)
        self.ledger.remove_collision(GROUND_TAG)
        self.assertEqual(self.ledger.tags, [LANDING_PAD_TAG])
        self.assertEqual(self.ledger.count, len(self.ledger.tags))

    def test_remove_unknown_tag_raises(self):
        self.ledger.add_collision(GROUND_TAG)
        with self.assertRaises(LedgerError):
            self.ledger.remove_collision(LANDING_PAD_TAG)
        # State untouched by the failed removal
        self.assertEqual(self.ledger.count, 1)
        self.assertEqual(self.ledger.tags, [GROUND_TAG])

    def test_remove_from_empty_raises(self):
        with self.assertRaises(LedgerError):
            self.ledger.remove_collision(GROUND_TAG)
        self.assertEqual(self.ledger.count, 0)

    def test_clear(self):
        self.ledger.add_collision(GROUND_TAG)
        self.ledger.add_collision(LANDING_PAD_TAG)
        self.ledger.clear()
        self.assertEqual(self.ledger.count, 0)
        self.assertFalse(self.ledger.is_colliding())

    def test_state_logged(self):
        with self.assertLogs('collision_ledger', level='DEBUG') as logs:
            self.ledger.add_collision(LANDING_PAD_TAG)
        self.assertIn("Count: 1 Tags: Landing Pad", logs.output[0])

    def test_repr(self):
        self.ledger.add_collision(GROUND_TAG)
        self.assertEqual(repr(self.ledger), "CollisionLedger(count=1, tags=['Ground'])")


if __name__ == '__main__':
    unittest.main()
