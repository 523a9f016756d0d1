"""
Declarative read-model pipelines.

A pipeline is an ordered list of typed stages run against one collection:

    match -> lookup -> unwind -> compute -> sort -> filter -> project -> paginate

The builder refuses a stage whose rank precedes the last stage added, so a
join can never run before its match and a computed field can never read a
join that has not resolved yet.

Leading ``Match`` stages are compiled into the SQL WHERE clause. When every
stage between the match and the sort keeps one output document per matched
row, and the sort keys are plain columns, the sort and the page slice are
executed by the database and joins are resolved for that page only.
Otherwise the remaining stages run in memory over the matched documents.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from vidtube.exceptions import ValidationError
from vidtube.readmodels.collections import PipelineError, get_collection
from vidtube.readmodels.expressions import And, AnyOf, Expression, Predicate, resolve

# Carries the join value of a looked-up document through its sub-pipeline
JOIN_KEY = "__joinKey__"

MATCH, LOOKUP, UNWIND, COMPUTE, SORT, FILTER, PROJECT, PAGINATE = range(8)
STAGE_NAMES = ("match", "lookup", "unwind", "compute", "sort", "filter", "project", "paginate")

SortKey = Tuple[str, bool]


class PipelineOrderError(PipelineError):
    """A stage was appended after a stage that must run later."""


def _values(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _sort_key(value: Any):
    # Missing values sort before everything else in ascending order
    return (value is not None, value)


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class Stage:
    """One transformation step; ``apply`` maps documents to documents."""

    rank = MATCH

    def apply(self, documents: List[dict], db: Session):
        raise NotImplementedError


@dataclass
class Match(Stage):
    predicate: Predicate
    rank = MATCH

    def apply(self, documents, db):
        return [doc for doc in documents if self.predicate.matches(doc)]


@dataclass
class Lookup(Stage):
    """
    Attach the documents of ``from_`` whose ``foreign_field`` equals this
    document's ``local_field`` as an array under ``as_``.

    When ``local_field`` holds an array of references, the joined array keeps
    the order of those references. ``pipeline`` runs over the joined
    documents before they are attached.
    """

    from_: str
    local_field: str
    foreign_field: str
    as_: str
    pipeline: Optional["Pipeline"] = None
    rank = LOOKUP

    def __post_init__(self):
        if self.pipeline is not None and any(isinstance(s, Paginate) for s in self.pipeline.stages):
            raise PipelineError("A lookup sub-pipeline cannot paginate")

    def apply(self, documents, db):
        keys = []
        seen = set()
        for doc in documents:
            for key in _values(resolve(doc, self.local_field)):
                if key not in seen:
                    seen.add(key)
                    keys.append(key)

        grouped: Dict[Any, List[dict]] = {}
        if keys:
            foreign = get_collection(self.from_).load(db, where=AnyOf(self.foreign_field, keys))
            for doc in foreign:
                doc[JOIN_KEY] = doc.get(self.foreign_field)
            if self.pipeline is not None:
                foreign = self.pipeline.apply(foreign, db)
            for doc in foreign:
                grouped.setdefault(doc.pop(JOIN_KEY, None), []).append(doc)

        joined = []
        for doc in documents:
            new = dict(doc)
            new[self.as_] = [
                dict(match)
                for key in _values(resolve(doc, self.local_field))
                for match in grouped.get(key, [])
            ]
            joined.append(new)
        return joined


@dataclass
class Unwind(Stage):
    """
    Flatten an array field: one output document per element.

    Documents whose array is empty or missing are dropped unless
    ``preserve_empty`` is set, in which case the field becomes None.
    """

    path: str
    preserve_empty: bool = False
    rank = UNWIND

    def apply(self, documents, db):
        flattened = []
        for doc in documents:
            value = doc.get(self.path)
            if isinstance(value, list):
                if not value:
                    if self.preserve_empty:
                        flattened.append({**doc, self.path: None})
                    continue
                for item in value:
                    flattened.append({**doc, self.path: item})
            elif value is None:
                if self.preserve_empty:
                    flattened.append({**doc, self.path: None})
            else:
                flattened.append(dict(doc))
        return flattened


@dataclass
class AddFields(Stage):
    """Computed fields; every expression reads the document as it was before the stage."""

    fields: Dict[str, Expression]
    rank = COMPUTE

    def apply(self, documents, db):
        computed = []
        for doc in documents:
            new = dict(doc)
            for name, expression in self.fields.items():
                new[name] = expression.evaluate(doc)
            computed.append(new)
        return computed


@dataclass
class Sort(Stage):
    keys: Sequence[SortKey]
    rank = SORT

    def apply(self, documents, db):
        ordered = list(documents)
        # Stable sorts applied from the least significant key up
        for path, descending in reversed(list(self.keys)):
            ordered.sort(key=lambda doc, path=path: _sort_key(resolve(doc, path)), reverse=descending)
        return ordered


@dataclass
class FilterArray(Stage):
    """Drop the elements of a joined array that fail a predicate."""

    path: str
    predicate: Predicate
    rank = FILTER

    def apply(self, documents, db):
        filtered = []
        for doc in documents:
            new = dict(doc)
            new[self.path] = [
                item for item in _values(doc.get(self.path))
                if isinstance(item, dict) and self.predicate.matches(item)
            ]
            filtered.append(new)
        return filtered


def project_document(doc: dict, fields: Dict[str, Any]) -> dict:
    """
    Whitelist the fields named in ``fields``.

    A rule of 1/True keeps the field, ``"$path"`` copies another (dotted)
    path, and a nested dict projects a sub-document or each element of an
    array.
    """
    projected = {}
    if JOIN_KEY in doc:
        projected[JOIN_KEY] = doc[JOIN_KEY]
    for name, rule in fields.items():
        if isinstance(rule, dict):
            value = doc.get(name)
            if isinstance(value, list):
                projected[name] = [project_document(item, rule) for item in value if isinstance(item, dict)]
            elif isinstance(value, dict):
                projected[name] = project_document(value, rule)
            else:
                projected[name] = None
        elif isinstance(rule, str) and rule.startswith("$"):
            projected[name] = resolve(doc, rule[1:])
        elif rule:
            projected[name] = resolve(doc, name)
    return projected


@dataclass
class Project(Stage):
    fields: Dict[str, Any]
    rank = PROJECT

    def apply(self, documents, db):
        return [project_document(doc, self.fields) for doc in documents]


@dataclass
class Paginate(Stage):
    """Page/limit slicing of the fully computed result set."""

    page: int = 1
    limit: int = 10
    rank = PAGINATE

    def __post_init__(self):
        if not (_positive_int(self.page) and _positive_int(self.limit)):
            raise ValidationError("page and limit must be positive integers")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def wrap(self, records: List[dict], total: int) -> dict:
        total_pages = math.ceil(total / self.limit) if total else 0
        return {
            "records": records,
            "totalRecords": total,
            "totalPages": total_pages,
            "currentPage": self.page,
            "limit": self.limit,
            "hasNextPage": self.page < total_pages,
            "hasPrevPage": self.page > 1,
        }

    def apply(self, documents, db):
        return self.wrap(documents[self.offset:self.offset + self.limit], len(documents))


class Pipeline:
    """
    Builder and executor for one read-model view.

    Usage:
        page = (Pipeline("comments")
                .match(Eq("video", video_id))
                .lookup("likes", "id", "comment", "likes")
                .add_fields(likesCount=Size("likes"))
                .sort(("createdAt", True))
                .paginate(1, 10)
                .run(db))
    """

    def __init__(self, collection: str):
        self.collection = get_collection(collection)
        self.stages: List[Stage] = []

    def add(self, stage: Stage) -> "Pipeline":
        if self.stages:
            last = self.stages[-1]
            if isinstance(last, Paginate):
                raise PipelineOrderError("paginate must be the last stage")
            if stage.rank < last.rank:
                raise PipelineOrderError(
                    f"cannot add a {STAGE_NAMES[stage.rank]} stage after a {STAGE_NAMES[last.rank]} stage"
                )
        self.stages.append(stage)
        return self

    def match(self, predicate: Predicate) -> "Pipeline":
        return self.add(Match(predicate))

    def lookup(self, from_: str, local_field: str, foreign_field: str, as_: str,
               pipeline: Optional["Pipeline"] = None) -> "Pipeline":
        return self.add(Lookup(from_, local_field, foreign_field, as_, pipeline))

    def unwind(self, path: str, preserve_empty: bool = False) -> "Pipeline":
        return self.add(Unwind(path, preserve_empty))

    def add_fields(self, **fields: Expression) -> "Pipeline":
        return self.add(AddFields(fields))

    def sort(self, *keys: SortKey) -> "Pipeline":
        return self.add(Sort(keys))

    def filter_array(self, path: str, predicate: Predicate) -> "Pipeline":
        return self.add(FilterArray(path, predicate))

    def project(self, fields: Dict[str, Any]) -> "Pipeline":
        return self.add(Project(fields))

    def paginate(self, page: int, limit: int) -> "Pipeline":
        return self.add(Paginate(page, limit))

    def apply(self, documents: List[dict], db: Session):
        """Run every stage in memory over already loaded documents."""
        return self._run_stages(self.stages, documents, db)

    @staticmethod
    def _run_stages(stages: Sequence[Stage], documents, db):
        for stage in stages:
            documents = stage.apply(documents, db)
        return documents

    def run(self, db: Session):
        """
        Execute against the database.

        Returns:
            A list of documents, or a page dict when the pipeline paginates
        """
        rest = list(self.stages)
        predicates = []
        while rest and isinstance(rest[0], Match):
            predicates.append(rest.pop(0).predicate)
        where = None
        if len(predicates) == 1:
            where = predicates[0]
        elif predicates:
            where = And(*predicates)

        paginate = rest.pop() if rest and isinstance(rest[-1], Paginate) else None
        sort_index = next((i for i, stage in enumerate(rest) if isinstance(stage, Sort)), None)

        if sort_index is not None and self._sortable_in_store(rest[:sort_index], rest[sort_index]):
            sort = rest[sort_index]
            remaining = rest[:sort_index] + rest[sort_index + 1:]
            if paginate is not None:
                total = self.collection.count(db, where)
                documents = self.collection.load(
                    db, where, sort.keys, offset=paginate.offset, limit=paginate.limit
                )
                return paginate.wrap(self._run_stages(remaining, documents, db), total)
            documents = self.collection.load(db, where, sort.keys)
            return self._run_stages(remaining, documents, db)

        documents = self._run_stages(rest, self.collection.load(db, where), db)
        if paginate is not None:
            return paginate.apply(documents, db)
        return documents

    def _sortable_in_store(self, before: Sequence[Stage], sort: Sort) -> bool:
        """Whether the database can sort and slice on behalf of the stages in ``before``."""
        produced = set()
        for stage in before:
            if isinstance(stage, Lookup):
                produced.add(stage.as_)
            elif isinstance(stage, AddFields):
                produced.update(stage.fields)
            elif isinstance(stage, Unwind):
                if not self._unwinds_to_one(before, stage):
                    return False
            else:
                return False
        return all(self.collection.has_column(key) and key not in produced for key, _ in sort.keys)

    def _unwinds_to_one(self, stages: Sequence[Stage], unwind: Unwind) -> bool:
        """An unwind keeps cardinality when it flattens a preserved join on a foreign primary key."""
        if not unwind.preserve_empty:
            return False
        for stage in stages:
            if isinstance(stage, Lookup) and stage.as_ == unwind.path:
                return (
                    stage.foreign_field == "id"
                    and self.collection.has_column(stage.local_field)
                    and (stage.pipeline is None or stage.pipeline.keeps_cardinality())
                )
        return False

    def keeps_cardinality(self) -> bool:
        """True when no stage can turn one document into several."""
        for index, stage in enumerate(self.stages):
            if isinstance(stage, Unwind) and not self._unwinds_to_one(self.stages[:index], stage):
                return False
        return True
