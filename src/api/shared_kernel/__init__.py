"""Shared Kernel module.

Canonical resource names (GRNs) and the observation context carried by
every probe. Both are plain value types with no dependency on a bounded
context, a framework, or the network.
"""
