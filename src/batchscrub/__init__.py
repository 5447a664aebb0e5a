"""
batchscrub: irreversible, checkpointed anonymization of large tables.

Drives every row of a table through a value transformer in bounded
identifier windows, committing each window as its own transaction.
"""

__version__ = "0.1.0"
