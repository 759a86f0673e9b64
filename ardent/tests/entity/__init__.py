"""Tests for self-validating entities."""
