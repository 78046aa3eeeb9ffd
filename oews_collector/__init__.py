"""
OEWS Collector

Ingests BLS Occupational Employment and Wage Statistics data from the bulk
flat-file distribution and the BLS Public Data API into a relational store.
"""
__version__ = "0.1.0"
