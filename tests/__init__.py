"""Tests for the vector pipe service.

Top-level modules cover configuration, record validation, the pipe reader
and the consumer loop. ``integration`` drives a real named pipe and
``contract`` checks the vectorization endpoint shapes.
"""
