"""Tests for ardent."""
