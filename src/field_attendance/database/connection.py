from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database


@dataclass
class MongoConfig:
    uri: str
    database: str
    server_selection_timeout_ms: int = 5000


class MongoConnection:
    """Lazily-created MongoClient for one database.

    Note: MongoClient keeps its own pool and is safe to share across Flask
    request threads, so one instance per configured database is enough.
    """

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[MongoClient] = None

    @property
    def name(self) -> str:
        return self._config.database

    def client(self) -> MongoClient:
        if self._client is None:
            self._client = MongoClient(
                self._config.uri,
                serverSelectionTimeoutMS=int(self._config.server_selection_timeout_ms),
                tz_aware=True,
            )
        return self._client

    def db(self) -> Database:
        return self.client()[self._config.database]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
