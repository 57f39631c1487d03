"""Integration tests against a real named pipe.

A FIFO is created under the test's temporary directory, a consumer thread
reads from it, and the tests write records and observe the logged outcomes.
"""
