"""Test suite for the ``speciesdex`` package."""
