"""
Test support utilities for tilehub tests.

Fakes that stand in for providers and clocks; they don't fit as fixtures
because several tests configure them differently.
"""
