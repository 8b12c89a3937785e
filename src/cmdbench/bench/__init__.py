"""Benchmarking engine for cmdbench.

Spawns commands through an executor, repeats them until the run-count
policy is satisfied, reduces the samples into statistics, and compares
the commands' speed relative to the fastest one.
"""
