"""Cluster-backed implementations of the mapper and reviewer seams."""
