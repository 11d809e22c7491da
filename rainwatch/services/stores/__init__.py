from rainwatch.services.stores.base import AlertStateStore, IngestionStore
from rainwatch.services.stores.sql import SqlAlertStateStore, SqlIngestionStore

__all__ = ["AlertStateStore", "IngestionStore", "SqlAlertStateStore", "SqlIngestionStore"]
