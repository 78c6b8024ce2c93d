"""Test suite for the Manifestation Garden engine."""
