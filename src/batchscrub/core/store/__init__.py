"""Row store: the record set the controller scrubs."""

from batchscrub.core.store.database import StoreDB
from batchscrub.core.store.protocols import RowStore, WindowTransaction
from batchscrub.core.store.sql import SqlRowStore, SqlWindowTransaction

__all__ = ["RowStore", "SqlRowStore", "SqlWindowTransaction", "StoreDB", "WindowTransaction"]
