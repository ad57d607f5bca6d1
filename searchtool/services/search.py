from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple

SORT_OPTIONS = ("name-asc", "name-desc", "updated-desc", "updated-asc", "rating-desc", "rating-asc")


def _get(doc: Any, key: str, default=None):
    if isinstance(doc, Mapping):
        value = doc.get(key, default)
    else:
        value = getattr(doc, key, default)
    return default if value is None else value


def _as_list(value) -> list:
    if isinstance(value, (list, tuple)):
        return [v for v in value if v]
    return [value] if value else []


def build_search_index(doc: Any) -> Tuple[str, List[str]]:
    """Flatten the searchable fields of a consultant into (text, keywords).

    ``text`` is the lowercased, space-joined blob; ``keywords`` holds each
    part lowercased once, in first-seen order.
    """
    parts = [_get(doc, "name")]
    for key in ("expertise", "tags", "sectors", "qualifications"):
        parts.extend(_as_list(_get(doc, key)))
    for project in _get(doc, "projects", []):
        parts.extend([_get(project, "title"), _get(project, "client")])
        parts.extend(_as_list(_get(project, "funders")))
    for item in _get(doc, "experience", []):
        parts.extend([_get(item, "role"), _get(item, "org"), _get(item, "location")])
        parts.extend(_as_list(_get(item, "highlights")))

    parts = [str(p) for p in parts if p]
    text = " ".join(parts).lower()
    keywords = list(dict.fromkeys(p.lower() for p in parts))
    return text, keywords


def apply_search_index(consultant) -> None:
    consultant.search_text, consultant.search_keywords = build_search_index(consultant)


def clean_associations(values: Optional[Iterable]) -> List[str]:
    """Trim, drop blanks and de-duplicate, keeping the first occurrence."""
    if not isinstance(values, (list, tuple)):
        return []
    trimmed = (str(v if v is not None else "").strip() for v in values)
    return list(dict.fromkeys(v for v in trimmed if v))


def flatten_contacts(payload: dict) -> dict:
    """Fill ``emails``/``phones`` from ``contacts`` when those are absent."""
    contacts = payload.pop("contacts", None) or {}
    if not payload.get("emails") and contacts.get("emails"):
        payload["emails"] = [e["value"] for e in contacts["emails"] if e.get("value")]
    if not payload.get("phones") and contacts.get("phones"):
        payload["phones"] = [p["value"] for p in contacts["phones"] if p.get("value")]
    return payload


def _contains(values: Iterable, needle: str) -> bool:
    return any(needle in str(v).lower() for v in values if v)


def matches_filters(
    consultant: Any,
    q: Optional[str] = None,
    exp: Optional[str] = None,
    expertise: Optional[str] = None,
    qual: Optional[str] = None,
    min_rating: Optional[float] = None,
) -> bool:
    q = (q or "").strip().lower()
    if q:
        basics = [_get(consultant, "name", "")]
        for key in ("expertise", "emails", "phones", "tags"):
            basics.extend(_as_list(_get(consultant, key)))
        if not _contains(basics, q):
            return False

    exp = (exp or "").strip().lower()
    if exp:
        hit = False
        for item in _get(consultant, "experience", []):
            fields = [_get(item, "role"), _get(item, "org"), _get(item, "location")]
            fields.extend(_as_list(_get(item, "highlights")))
            if _contains(fields, exp):
                hit = True
                break
        if not hit:
            return False

    if expertise and expertise not in _as_list(_get(consultant, "expertise")):
        return False
    if qual and qual not in _as_list(_get(consultant, "qualifications")):
        return False
    if min_rating is not None and float(_get(consultant, "rating_avg", 0)) < min_rating:
        return False
    return True


def sort_consultants(consultants: Iterable[Any], sort: str = "name-asc") -> list:
    field, _, direction = sort.partition("-")
    reverse = direction == "desc"
    epoch = datetime.min.replace(tzinfo=timezone.utc)

    def updated_key(c):
        ts = _get(c, "updated_at") or _get(c, "created_at") or epoch
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts

    if field == "updated":
        key = updated_key
    elif field == "rating":
        key = lambda c: float(_get(c, "rating_avg", 0))
    else:
        key = lambda c: (_get(c, "name", "") or "").lower()
    return sorted(consultants, key=key, reverse=reverse)
