"""Prediction persistence: MongoDB when configured, in-memory otherwise."""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from core.config import AppSettings
from core.exceptions import InverstraError
from schemas.predictions import Prediction, PredictionStatus, PredictionUpdate

logger = logging.getLogger(__name__)

COLLECTION_NAME = "predictions"


class PredictionStoreError(InverstraError):
    """Base class for prediction storage errors."""


class PredictionNotFoundError(PredictionStoreError):
    def __init__(self, prediction_id: str):
        super().__init__(f"Prediction '{prediction_id}' not found")
        self.prediction_id = prediction_id


class DuplicateVoteError(PredictionStoreError):
    def __init__(self, prediction_id: str, wallet_address: str):
        super().__init__(
            f"Wallet {wallet_address} already voted on prediction '{prediction_id}'"
        )


class PredictionClosedError(PredictionStoreError):
    def __init__(self, prediction_id: str):
        super().__init__(f"Prediction '{prediction_id}' is already finalised")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PredictionStore(ABC):
    """Async CRUD interface for prediction records."""

    backend = "custom"

    @abstractmethod
    async def create(self, prediction: Prediction) -> Prediction:
        raise NotImplementedError

    @abstractmethod
    async def get(self, prediction_id: str) -> Prediction:
        """Return a prediction or raise PredictionNotFoundError."""
        raise NotImplementedError

    @abstractmethod
    async def list(
        self,
        status: Optional[PredictionStatus] = None,
        creator_address: Optional[str] = None,
        limit: int = 100,
    ) -> List[Prediction]:
        """Newest first."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, prediction_id: str, changes: PredictionUpdate) -> Prediction:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, prediction_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def add_vote(
        self, prediction_id: str, wallet_address: str, support: bool
    ) -> Prediction:
        """Count one vote per wallet on an open prediction."""
        raise NotImplementedError

    @abstractmethod
    async def finalise(
        self, prediction_id: str, outcome: Optional[bool] = None
    ) -> Prediction:
        """Close a prediction; without ``outcome`` the vote majority decides."""
        raise NotImplementedError

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        """Release resources held by the store."""


class InMemoryPredictionStore(PredictionStore):
    """Process-local store used when no database is configured."""

    backend = "memory"

    def __init__(self):
        self._items: Dict[str, Prediction] = {}

    def _open(self, prediction_id: str) -> Prediction:
        prediction = self._items.get(prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        if prediction.status is PredictionStatus.FINALISED:
            raise PredictionClosedError(prediction_id)
        return prediction

    async def create(self, prediction: Prediction) -> Prediction:
        self._items[prediction.id] = prediction.model_copy(deep=True)
        return prediction

    async def get(self, prediction_id: str) -> Prediction:
        prediction = self._items.get(prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        return prediction.model_copy(deep=True)

    async def list(self, status=None, creator_address=None, limit=100):
        items = [
            p
            for p in self._items.values()
            if (status is None or p.status == status)
            and (creator_address is None or p.creator_address == creator_address)
        ]
        items.sort(key=lambda p: p.created_at, reverse=True)
        return [p.model_copy(deep=True) for p in items[:limit]]

    async def update(self, prediction_id: str, changes: PredictionUpdate) -> Prediction:
        prediction = self._open(prediction_id)
        updated = prediction.model_copy(
            update={**changes.model_dump(exclude_unset=True), "updated_at": _utcnow()}
        )
        self._items[prediction_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, prediction_id: str) -> None:
        if self._items.pop(prediction_id, None) is None:
            raise PredictionNotFoundError(prediction_id)

    async def add_vote(self, prediction_id, wallet_address, support):
        prediction = self._open(prediction_id)
        if wallet_address in prediction.voters:
            raise DuplicateVoteError(prediction_id, wallet_address)
        prediction.voters.append(wallet_address)
        if support:
            prediction.votes_for += 1
        else:
            prediction.votes_against += 1
        prediction.updated_at = _utcnow()
        return prediction.model_copy(deep=True)

    async def finalise(self, prediction_id, outcome=None):
        prediction = self._open(prediction_id)
        prediction.outcome = (
            outcome if outcome is not None else prediction.majority_outcome()
        )
        prediction.status = PredictionStatus.FINALISED
        prediction.updated_at = _utcnow()
        return prediction.model_copy(deep=True)


class MongoPredictionStore(PredictionStore):
    """MongoDB-backed store. pymongo calls run in worker threads."""

    backend = "mongodb"

    def __init__(
        self,
        uri: str,
        database: str = "inverstra",
        client: Optional[MongoClient] = None,
    ):
        self.client = client or MongoClient(
            uri, tz_aware=True, serverSelectionTimeoutMS=5000
        )
        self.collection = self.client[database][COLLECTION_NAME]

    @staticmethod
    def _to_document(prediction: Prediction) -> Dict[str, Any]:
        doc = prediction.model_dump()
        doc["_id"] = doc.pop("id")
        doc["status"] = prediction.status.value
        return doc

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> Prediction:
        doc = dict(doc)
        doc["id"] = doc.pop("_id")
        return Prediction.model_validate(doc)

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self.client.admin.command, "ping")
        except PyMongoError as e:
            logger.error(f"MongoDB ping failed: {e}")
            return False
        return True

    async def ensure_indexes(self) -> None:
        await asyncio.to_thread(self.collection.create_index, "status")
        await asyncio.to_thread(self.collection.create_index, "creator_address")
        await asyncio.to_thread(
            self.collection.create_index, [("created_at", DESCENDING)]
        )

    async def _raise_unavailable(self, prediction_id: str) -> None:
        """Explain why a conditional update on an open prediction matched nothing."""
        doc = await asyncio.to_thread(self.collection.find_one, {"_id": prediction_id})
        if doc is None:
            raise PredictionNotFoundError(prediction_id)
        raise PredictionClosedError(prediction_id)

    async def create(self, prediction: Prediction) -> Prediction:
        await asyncio.to_thread(self.collection.insert_one, self._to_document(prediction))
        return prediction

    async def get(self, prediction_id: str) -> Prediction:
        doc = await asyncio.to_thread(self.collection.find_one, {"_id": prediction_id})
        if doc is None:
            raise PredictionNotFoundError(prediction_id)
        return self._from_document(doc)

    async def list(self, status=None, creator_address=None, limit=100):
        query: Dict[str, Any] = {}
        if status is not None:
            query["status"] = PredictionStatus(status).value
        if creator_address is not None:
            query["creator_address"] = creator_address

        def _find() -> List[Dict[str, Any]]:
            cursor = self.collection.find(query).sort("created_at", DESCENDING)
            return list(cursor.limit(limit))

        return [self._from_document(doc) for doc in await asyncio.to_thread(_find)]

    async def update(self, prediction_id: str, changes: PredictionUpdate) -> Prediction:
        fields = {**changes.model_dump(exclude_unset=True), "updated_at": _utcnow()}
        doc = await asyncio.to_thread(
            self.collection.find_one_and_update,
            {"_id": prediction_id, "status": PredictionStatus.OPEN.value},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            await self._raise_unavailable(prediction_id)
        return self._from_document(doc)

    async def delete(self, prediction_id: str) -> None:
        result = await asyncio.to_thread(
            self.collection.delete_one, {"_id": prediction_id}
        )
        if result.deleted_count == 0:
            raise PredictionNotFoundError(prediction_id)

    async def add_vote(self, prediction_id, wallet_address, support):
        counter = "votes_for" if support else "votes_against"
        doc = await asyncio.to_thread(
            self.collection.find_one_and_update,
            {
                "_id": prediction_id,
                "status": PredictionStatus.OPEN.value,
                "voters": {"$ne": wallet_address},
            },
            {
                "$inc": {counter: 1},
                "$push": {"voters": wallet_address},
                "$set": {"updated_at": _utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            current = await self.get(prediction_id)
            if current.status is PredictionStatus.FINALISED:
                raise PredictionClosedError(prediction_id)
            raise DuplicateVoteError(prediction_id, wallet_address)
        return self._from_document(doc)

    async def finalise(self, prediction_id, outcome=None):
        current = await self.get(prediction_id)
        if current.status is PredictionStatus.FINALISED:
            raise PredictionClosedError(prediction_id)
        if outcome is None:
            outcome = current.majority_outcome()
        doc = await asyncio.to_thread(
            self.collection.find_one_and_update,
            {"_id": prediction_id, "status": PredictionStatus.OPEN.value},
            {
                "$set": {
                    "status": PredictionStatus.FINALISED.value,
                    "outcome": outcome,
                    "updated_at": _utcnow(),
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            await self._raise_unavailable(prediction_id)
        return self._from_document(doc)

    async def aclose(self) -> None:
        await asyncio.to_thread(self.client.close)


async def connect_prediction_store(settings: AppSettings) -> PredictionStore:
    """Pick the prediction store for ``settings``.

    Without MONGODB_URI, or when MongoDB cannot be reached, predictions are
    kept in memory and the server keeps running.
    """
    if not settings.mongodb_uri:
        logger.warning(
            "MONGODB_URI not set - predictions are kept in memory for this process"
        )
        return InMemoryPredictionStore()

    try:
        store = MongoPredictionStore(settings.mongodb_uri, settings.mongodb_database)
    except PyMongoError as e:
        logger.error(f"MongoDB configuration error: {e}. Using in-memory store.")
        return InMemoryPredictionStore()

    if not await store.ping():
        logger.error("MongoDB unreachable. Using in-memory store.")
        await store.aclose()
        return InMemoryPredictionStore()

    try:
        await store.ensure_indexes()
    except PyMongoError as e:
        logger.warning(f"Could not create MongoDB indexes: {e}")
    logger.info(f"MongoDB connected, database '{settings.mongodb_database}'")
    return store
