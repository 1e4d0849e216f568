"""
Core of the office market data explorer.

This package centralizes reading the market dataset, normalizing metric
values, keeping the market selectors consistent with the data, and
assembling chronologically ordered trend series for comparison charts.
"""
