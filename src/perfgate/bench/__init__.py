"""Benchmarking subsystem for perfgate.

Provides tools for timing opaque units of work with adaptive sampling,
summarizing the samples, and comparing a candidate run against a
baseline run case by case.
"""
