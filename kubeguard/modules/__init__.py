"""Kubeguard modules."""
