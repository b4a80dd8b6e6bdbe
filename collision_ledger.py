"""
collision_ledger.py
Contact bookkeeping for the SN-11 agent

Tracks how many contacts the vehicle currently has and the tag of each
contacted surface. The physics source reports collision begin/end events and
the ledger is the only place those events are recorded.
"""

import logging

from sn11_constants import LANDING_PAD_TAG, GROUND_TAG

logger = logging.getLogger(__name__)

__all__ = ['CollisionLedger', 'LedgerError', 'LANDING_PAD_TAG', 'GROUND_TAG']


class LedgerError(RuntimeError):
    """Raised when a collision end event has no matching begin event."""


class CollisionLedger:
    """
    Current contact state of the vehicle.

    Invariant: ``count == len(tags)``. Tags may repeat (two legs touching the
    pad are two "Landing Pad" contacts).
    """

    def __init__(self):
        self.count = 0
        self.tags = []

    def add_collision(self, tag):
        """Record a collision begin event for a surface with the given tag."""
        self.count += 1
        self.tags.append(tag)
        self.log_state()

    def remove_collision(self, tag):
        """
        Record a collision end event.

        Raises:
            LedgerError: if no active contact carries the tag
        """
        try:
            self.tags.remove(tag)
        except ValueError:
            self.log_state(level=logging.ERROR)
            raise LedgerError(
                f"Collision exit for tag {tag!r} without a matching collision enter") from None
        self.count -= 1
        self.log_state()

    def is_colliding(self):
        """Return whether the vehicle is touching anything."""
        return self.count > 0

    def has_tag(self, tag):
        """Return whether any active contact carries the tag."""
        return tag in self.tags

    def clear(self):
        """Forget all contacts (episode reset)."""
        self.count = 0
        self.tags = []

    def log_state(self, level=logging.DEBUG):
        """Log the contact count and tags."""
        logger.log(level, "Count: %d Tags: %s", self.count, ", ".join(self.tags))

    def __repr__(self):
        return f"CollisionLedger(count={self.count}, tags={self.tags!r})"
