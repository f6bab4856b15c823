"""perfgate — adaptive micro-benchmarks and baseline/candidate regression reports."""

__version__ = "0.1.0"
