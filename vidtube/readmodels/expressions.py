"""
Predicates and computed-field expressions used by pipeline stages.

Documents are plain dicts. A dotted path walks into nested documents and,
when it crosses an array, collects the values from every element, so
``resolve(playlist, "videos.views")`` yields the list of view counts.
"""

from typing import Any, Iterable, List, Optional

from sqlalchemy import and_, or_


def resolve(doc: Any, path: str) -> Any:
    """Read a dotted path out of a document, flattening across arrays."""
    value = doc
    for part in path.split("."):
        if isinstance(value, list):
            collected = []
            for item in value:
                inner = item.get(part) if isinstance(item, dict) else None
                if isinstance(inner, list):
                    collected.extend(inner)
                elif inner is not None:
                    collected.append(inner)
            value = collected
        elif isinstance(value, dict):
            value = value.get(part)
        else:
            return None
    return value


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


# ============================================
# Predicates
# ============================================

class Predicate:
    """A boolean test on a document that can also be compiled to SQL."""

    def matches(self, doc: dict) -> bool:
        raise NotImplementedError

    def to_clause(self, collection):
        raise NotImplementedError


class Eq(Predicate):
    """Field equals value; on an array, any element equals value."""

    def __init__(self, path: str, value: Any):
        self.path = path
        self.value = value

    def matches(self, doc: dict) -> bool:
        found = resolve(doc, self.path)
        if isinstance(found, list):
            return self.value in found
        return found == self.value

    def to_clause(self, collection):
        column = collection.column(self.path)
        if self.value is None:
            return column.is_(None)
        return column == self.value

    def __repr__(self):
        return f"Eq({self.path!r}, {self.value!r})"


class AnyOf(Predicate):
    """Field value is one of a fixed set."""

    def __init__(self, path: str, values: Iterable[Any]):
        self.path = path
        self.values = list(values)

    def matches(self, doc: dict) -> bool:
        return any(item in self.values for item in _as_list(resolve(doc, self.path)))

    def to_clause(self, collection):
        return collection.column(self.path).in_(self.values)

    def __repr__(self):
        return f"AnyOf({self.path!r}, {len(self.values)} values)"


class IsSet(Predicate):
    """Field is present and not null."""

    def __init__(self, path: str):
        self.path = path

    def matches(self, doc: dict) -> bool:
        return resolve(doc, self.path) not in (None, [])

    def to_clause(self, collection):
        return collection.column(self.path).is_not(None)


class Contains(Predicate):
    """
    Text field contains a substring.

    Matching is case-insensitive unless ``case_sensitive`` is set. The
    substring is literal: LIKE wildcards in it are escaped.
    """

    def __init__(self, path: str, text: str, case_sensitive: bool = False):
        self.path = path
        self.text = text
        self.case_sensitive = case_sensitive

    def matches(self, doc: dict) -> bool:
        found = resolve(doc, self.path)
        for item in _as_list(found):
            if not isinstance(item, str):
                continue
            if self.case_sensitive and self.text in item:
                return True
            if not self.case_sensitive and self.text.lower() in item.lower():
                return True
        return False

    def to_clause(self, collection):
        column = collection.column(self.path)
        if self.case_sensitive:
            return column.contains(self.text, autoescape=True)
        return column.icontains(self.text, autoescape=True)

    def __repr__(self):
        return f"Contains({self.path!r}, {self.text!r})"


class Or(Predicate):

    def __init__(self, *predicates: Predicate):
        self.predicates = predicates

    def matches(self, doc: dict) -> bool:
        return any(p.matches(doc) for p in self.predicates)

    def to_clause(self, collection):
        return or_(*(p.to_clause(collection) for p in self.predicates))


class And(Predicate):

    def __init__(self, *predicates: Predicate):
        self.predicates = predicates

    def matches(self, doc: dict) -> bool:
        return all(p.matches(doc) for p in self.predicates)

    def to_clause(self, collection):
        return and_(*(p.to_clause(collection) for p in self.predicates))


# ============================================
# Computed fields
# ============================================

class Expression:
    """A value derived from a document, evaluated by AddFields."""

    def evaluate(self, doc: dict) -> Any:
        raise NotImplementedError


class Size(Expression):
    """Number of elements in an array, optionally only those matching ``where``."""

    def __init__(self, path: str, where: Optional[Predicate] = None):
        self.path = path
        self.where = where

    def evaluate(self, doc: dict) -> int:
        items = _as_list(resolve(doc, self.path))
        if self.where is not None:
            items = [item for item in items if isinstance(item, dict) and self.where.matches(item)]
        return len(items)


class Sum(Expression):
    """
    Sum of a numeric field across an array.

    Args:
        path: Array to sum over
        field: Field of each element to add up; the elements themselves when omitted
        where: Only elements matching this predicate contribute
    """

    def __init__(self, path: str, field: Optional[str] = None, where: Optional[Predicate] = None):
        self.path = path
        self.field = field
        self.where = where

    def evaluate(self, doc: dict) -> float:
        total = 0
        for item in _as_list(resolve(doc, self.path)):
            if self.where is not None and not (isinstance(item, dict) and self.where.matches(item)):
                continue
            value = resolve(item, self.field) if self.field else item
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                total += value
        return total


class First(Expression):
    """First element of an array, or None when it is empty."""

    def __init__(self, path: str):
        self.path = path

    def evaluate(self, doc: dict) -> Any:
        items = _as_list(resolve(doc, self.path))
        return items[0] if items else None


class IsMember(Expression):
    """
    Whether a value occurs in the values found at ``path``.

    Used for viewer-relative flags: ``IsMember(viewer_id, "likes.likedBy")``.
    An anonymous viewer (None) is never a member.
    """

    def __init__(self, value: Any, path: str):
        self.value = value
        self.path = path

    def evaluate(self, doc: dict) -> bool:
        if self.value is None:
            return False
        return self.value in _as_list(resolve(doc, self.path))
