"""Vectorization endpoint contract tests.

These tests pin the request/response shapes of ``POST /vectorize/`` using an
in-process mock transport, so no service needs to be running.
"""
