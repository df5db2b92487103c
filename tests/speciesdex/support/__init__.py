"""Test doubles and payload factories."""
