"""Tests for core foundations."""
