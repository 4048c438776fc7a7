"""Shared types, interfaces and helpers used across helios components."""
