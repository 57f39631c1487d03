"""Vector pipe service.

Subpackages:
- ``vectorpipe.common``: configuration, logging and metrics.
- ``vectorpipe.pipe``: named pipe consumer that validates incoming vectors.
- ``vectorpipe.client``: client for the remote vectorization endpoint.

Entry point: ``vectorpipe.main`` (installed as the ``vectorpipe`` command).
"""

__version__ = "0.1.0"
