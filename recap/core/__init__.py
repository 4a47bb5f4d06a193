"""Shared state and console helpers."""
