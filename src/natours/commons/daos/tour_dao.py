"""Tour DAO module.

``TourDAO`` is the only component that talks to MongoDB. Reads go through
``TourQuery``, an immutable, lazily-evaluated handle that is refined step by
step and executed once.

Every read path (``find``, ``find_by_id``, ``update_by_id``, ``delete_by_id``
and ``aggregate``) is prefixed with ``HIDDEN_TOURS_FILTER``. The handle API has
no way to remove it, so secret tours are never observed by a read.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo import MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from natours.commons.exceptions import TourValidationError
from natours.commons.natours_dataclasses.tour import VERSION_KEY, cast_filter_value, to_object_id
from natours.commons.natours_logger import NatoursLogger
from natours.configs import MONGO_DB, MONGO_TOURS_COLLECTION, MONGO_URI

HIDDEN_TOURS_FILTER = {"secretTour": {"$ne": True}}
DEFAULT_PROJECTION = {VERSION_KEY: 0}

ALLOWED_OPERATORS = {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin"}
LIST_OPERATORS = {"$in", "$nin"}


@dataclass(frozen=True)
class QuerySpec:
    """Specification of a single fetch against the tours collection."""

    filter: Dict[str, Any] = field(default_factory=dict)
    sort: Tuple[Tuple[str, int], ...] = ()
    projection: Optional[Dict[str, int]] = None
    skip: int = 0
    limit: int = 0


def _merge_filters(base_filter: Dict[str, Any], extra_filter: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two filters using conjunction."""
    if not base_filter:
        return dict(extra_filter)
    if not extra_filter:
        return dict(base_filter)
    return {"$and": [base_filter, extra_filter]}


def _cast_operator_doc(field_name: str, operators: Dict[str, Any]) -> Dict[str, Any]:
    casted = {}
    for op, value in operators.items():
        if op not in ALLOWED_OPERATORS:
            raise TourValidationError(f"Unsupported filter operator: {op}")
        if op in LIST_OPERATORS and isinstance(value, str):
            value = [item for item in value.split(",") if item]
        casted[op] = cast_filter_value(field_name, value)
    return casted


def cast_filter(filter_doc: Dict[str, Any]) -> Dict[str, Any]:
    """Cast raw filter values to stored types and reject unsupported operators."""
    casted = {}
    for key, value in filter_doc.items():
        if key == "$and":
            if not isinstance(value, list) or not all(isinstance(clause, dict) for clause in value):
                raise TourValidationError("$and must be a list of filters.")
            casted[key] = [cast_filter(clause) for clause in value]
            continue
        if key.startswith("$"):
            raise TourValidationError(f"Unsupported filter operator: {key}")
        if isinstance(value, dict) and value and all(str(k).startswith("$") for k in value):
            casted[key] = _cast_operator_doc(key, value)
        elif isinstance(value, dict):
            # Embedded document equality; compared as-is.
            casted[key] = value
        else:
            casted[key] = cast_filter_value(key, value)
    return casted


def check_projection(projection: Optional[Dict[str, int]]) -> None:
    """Reject projections mixing inclusion and exclusion; ``_id`` may be excluded in either."""
    if not projection:
        return
    modes = {bool(value) for name, value in projection.items() if name != "_id"}
    if len(modes) > 1:
        raise TourValidationError("Field selection cannot mix included and excluded fields.")


class TourQuery:
    """Lazy, immutable handle over a tours fetch.

    Each refinement returns a new handle. Nothing touches the database until
    ``execute`` is called.
    """

    def __init__(self, dao: "TourDAO", spec: QuerySpec = None):
        self._dao = dao
        self._spec = spec or QuerySpec()

    @property
    def spec(self) -> QuerySpec:
        """Current fetch specification."""
        return self._spec

    def _refine(self, **changes) -> "TourQuery":
        return TourQuery(self._dao, replace(self._spec, **changes))

    def where(self, conditions: Dict[str, Any]) -> "TourQuery":
        """Add conditions, combined with existing ones by conjunction."""
        return self._refine(filter=_merge_filters(self._spec.filter, conditions))

    def order_by(self, keys: Sequence[Tuple[str, int]]) -> "TourQuery":
        """Replace the sort order with ``keys``, highest priority first."""
        return self._refine(sort=tuple((name, int(direction)) for name, direction in keys))

    def select(self, projection: Dict[str, int]) -> "TourQuery":
        """Replace the field projection."""
        return self._refine(projection=dict(projection))

    def window(self, skip: int, limit: int) -> "TourQuery":
        """Apply skip/limit. ``limit=0`` means no limit."""
        return self._refine(skip=max(int(skip), 0), limit=max(int(limit), 0))

    def execute(self) -> List[Dict[str, Any]]:
        """Run the fetch and return the matching documents."""
        return self._dao.run(self._spec)

    def __repr__(self):
        """String representation."""
        return f"TourQuery({self._spec!r})"


class TourDAO(object):
    """MongoDB access for the tours collection."""

    ASCENDING = 1
    DESCENDING = -1

    _instance: "TourDAO" = None
    _client: MongoClient = None

    def __init__(self, collection=None):
        self.logger = NatoursLogger()
        if collection is None:
            if TourDAO._client is None:
                TourDAO._client = MongoClient(MONGO_URI)
            collection = TourDAO._client[MONGO_DB][MONGO_TOURS_COLLECTION]
        self._collection = collection

    @classmethod
    def get_instance(cls) -> "TourDAO":
        """Return the shared DAO over the configured collection."""
        if cls._instance is None:
            cls._instance = TourDAO()
        return cls._instance

    def close(self):
        """Close the shared Mongo client and forget the shared DAO."""
        if TourDAO._client is not None:
            TourDAO._client.close()
        TourDAO._client = None
        TourDAO._instance = None

    @property
    def collection(self):
        """Underlying collection."""
        return self._collection

    @staticmethod
    def _visible(filter_doc: Dict[str, Any] = None) -> Dict[str, Any]:
        return _merge_filters(HIDDEN_TOURS_FILTER, filter_doc or {})

    def ensure_indexes(self):
        """Create the unique index on ``name``."""
        self._collection.create_index("name", unique=True)

    def find(self) -> TourQuery:
        """Return a match-all handle over the visible tours."""
        return TourQuery(self)

    def run(self, spec: QuerySpec) -> List[Dict[str, Any]]:
        """Execute a ``QuerySpec``.

        Parameters
        ----------
        spec : QuerySpec
            Filter, sort, projection and window to apply.

        Returns
        -------
        list of dict
            Matching documents in sort order.

        Raises
        ------
        TourValidationError
            If a filter value cannot be cast or uses an unsupported operator,
            or if the projection mixes included and excluded fields.
        """
        check_projection(spec.projection)
        query_filter = self._visible(cast_filter(spec.filter))
        self.logger.debug(
            f"Running tours query filter={query_filter} sort={spec.sort} "
            f"projection={spec.projection} skip={spec.skip} limit={spec.limit}"
        )
        cursor = self._collection.find(query_filter, spec.projection)
        if spec.sort:
            cursor = cursor.sort(list(spec.sort))
        if spec.skip:
            cursor = cursor.skip(spec.skip)
        if spec.limit:
            cursor = cursor.limit(spec.limit)
        return list(cursor)

    def find_by_id(self, tour_id) -> Optional[Dict[str, Any]]:
        """Return the visible tour with ``tour_id`` or ``None``."""
        return self._collection.find_one(self._visible({"_id": to_object_id(tour_id)}), DEFAULT_PROJECTION)

    def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a validated tour document and return it with its ``_id``."""
        doc = dict(doc)
        doc[VERSION_KEY] = 0
        try:
            result = self._collection.insert_one(doc)
        except DuplicateKeyError:
            raise TourValidationError(f"Duplicate field value: {doc.get('name')}. Please use another value!")
        doc["_id"] = result.inserted_id
        doc.pop(VERSION_KEY, None)
        self.logger.info(f"Created tour {doc['_id']} ({doc.get('name')})")
        return doc

    def update_by_id(self, tour_id, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply ``changes`` to a visible tour and return the updated document."""
        update = {"$inc": {VERSION_KEY: 1}}
        if changes:
            update["$set"] = changes
        try:
            return self._collection.find_one_and_update(
                self._visible({"_id": to_object_id(tour_id)}),
                update,
                projection=DEFAULT_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise TourValidationError(f"Duplicate field value: {changes.get('name')}. Please use another value!")

    def delete_by_id(self, tour_id) -> Optional[Dict[str, Any]]:
        """Delete a visible tour; return the deleted document or ``None``."""
        deleted = self._collection.find_one_and_delete(self._visible({"_id": to_object_id(tour_id)}))
        if deleted is not None:
            self.logger.info(f"Deleted tour {deleted['_id']}")
        return deleted

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Run an aggregation pipeline over the visible tours."""
        full_pipeline = [{"$match": HIDDEN_TOURS_FILTER}] + list(pipeline)
        self.logger.debug(f"Running tours aggregation {full_pipeline}")
        return list(self._collection.aggregate(full_pipeline))

    def insert_many(self, docs: List[Dict[str, Any]]) -> int:
        """Bulk insert documents; return how many were inserted."""
        if not docs:
            return 0
        for doc in docs:
            doc.setdefault(VERSION_KEY, 0)
        result = self._collection.insert_many(docs)
        return len(result.inserted_ids)

    def delete_all(self) -> int:
        """Delete every tour, hidden ones included; return the count."""
        return self._collection.delete_many({}).deleted_count

    def ping(self) -> bool:
        """Return True when the database answers a ping."""
        self._collection.database.command("ping")
        return True
