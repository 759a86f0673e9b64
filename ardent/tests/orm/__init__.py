"""Tests for the host mapper."""
