"""
MongoDB repository for annotation access.

Loads annotation documents written by the CMS and turns them into validated
Annotation models for an AnnotationPool.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.collection import Collection

from aves.annotation_pool import AnnotationPool
from aves.schemas import Annotation
from aves.settings import get_annotation_collection_name, get_db_name, get_mongo_uri

logger = logging.getLogger(__name__)

# Global connection pool (reused across requests)
_client: Optional[MongoClient] = None
_collection: Optional[Collection] = None

# CMS documents use camelCase keys
_FIELD_ALIASES = {
    "imageId": "image_id",
    "boundingBox": "bounding_box",
    "spanishTerm": "spanish_term",
    "englishTerm": "english_term",
    "difficultyLevel": "difficulty_level",
    "isVisible": "is_visible",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "type": "category",
}
_BOX_ALIASES = {"topLeft": "top_left", "bottomRight": "bottom_right"}


# ---- Connection Management ----

def get_collection() -> Collection:
    """
    Get the MongoDB annotation collection.

    Uses a persistent connection pool that's reused across requests.

    Returns:
        MongoDB collection object
    """
    global _client, _collection

    if _collection is not None:
        return _collection

    _client = MongoClient(
        get_mongo_uri(),
        maxPoolSize=10,  # Connection pool size
        minPoolSize=1,   # Keep at least 1 connection alive
        maxIdleTimeMS=60000  # Keep connections alive for 60 seconds
    )
    _collection = _client[get_db_name()][get_annotation_collection_name()]
    return _collection


# ---- Document Mapping ----

def normalize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """
    Convert a CMS document to Annotation field names.

    Accepts camelCase or snake_case keys; Mongo's _id becomes id when no id is set.
    """
    normalized = {_FIELD_ALIASES.get(key, key): value for key, value in doc.items()}
    if "id" not in normalized and "_id" in normalized:
        normalized["id"] = str(normalized["_id"])
    normalized.pop("_id", None)

    box = normalized.get("bounding_box")
    if isinstance(box, dict):
        normalized["bounding_box"] = {_BOX_ALIASES.get(k, k): v for k, v in box.items()}
    return normalized


def document_to_annotation(doc: dict[str, Any]) -> Optional[Annotation]:
    """
    Validate one document, or None (with a warning) when it is malformed.
    """
    normalized = normalize_document(doc)
    try:
        return Annotation.model_validate(normalized)
    except ValidationError as exc:
        logger.warning(
            "Skipping malformed annotation %s: %d validation error(s)",
            normalized.get("id", "<no id>"), exc.error_count(),
        )
        return None


# ---- Query Functions ----

def load_annotations(
    image_id: Optional[str] = None,
    include_hidden: bool = False,
    collection: Optional[Collection] = None,
) -> list[Annotation]:
    """
    Load annotations from the CMS.

    Args:
        image_id: If provided, only annotations on this image
        include_hidden: If True, keep annotations flagged invisible
        collection: Collection to read (defaults to get_collection())

    Returns:
        List of validated Annotation models
    """
    collection = collection if collection is not None else get_collection()

    query: dict[str, Any] = {}
    if image_id:
        query["$or"] = [{"imageId": image_id}, {"image_id": image_id}]

    annotations = []
    for doc in collection.find(query):
        annotation = document_to_annotation(doc)
        if annotation is None:
            continue
        if not annotation.is_visible and not include_hidden:
            logger.debug("Skipping hidden annotation %s", annotation.id)
            continue
        annotations.append(annotation)
    return annotations


def build_pool(
    image_id: Optional[str] = None,
    collection: Optional[Collection] = None,
) -> AnnotationPool:
    """
    Build an AnnotationPool from visible CMS annotations.

    Raises:
        EmptyPoolError: If no usable annotations were found
    """
    return AnnotationPool(load_annotations(image_id=image_id, collection=collection))
