"""Named pipe consumer.

Primary components:
- ``fifo``: pipe existence checks and the session line reader.
- ``records``: record decoding and vector validation.
- ``consumer``: the cancellable ``ConsumerLoop`` and its ``ShutdownSignal``.
- ``worker``: runs a consumer loop on a dedicated thread.

Guidance:
- Create the FIFO outside this package (e.g. ``mkfifo``); the consumer only
  reads from it.
"""
