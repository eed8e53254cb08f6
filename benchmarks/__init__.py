"""Benchmarks for quditflow."""
