"""Tests for the ``speciesdex`` package."""
