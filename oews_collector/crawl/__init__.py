"""Hierarchical discovery of published occupation x industry wage series"""
