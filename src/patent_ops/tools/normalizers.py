"""
Normalizers turning OPS JSON envelopes into candidate domain records.

Every function here is pure: it reads the `ops:world-patent-data` envelope
with the tolerant traversal helpers and returns plain dicts in which every
field is present, using ``""`` or ``[]`` where the upstream node is absent.
Shape checking is left to the schema validator.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from patent_ops.core.types import PatentReference
from patent_ops.utils.traversal import as_list, first, get_path, text_at, text_of

ENVELOPE_ROOT = "ops:world-patent-data"
NO_CLASSIFICATION_MATCH_TITLE = "No results found"


def _envelope(payload: Any, *keys: str) -> Any:
    return get_path(payload, ENVELOPE_ROOT, *keys)


def _title(node: Any) -> str:
    """Invention title, preferring the English variant when several are given."""
    titles = as_list(get_path(node, "invention-title"))
    for title in titles:
        if text_at(title, "@lang").lower() == "en" and text_of(title):
            return text_of(title)
    return text_of(first(titles))


def _abstract(*nodes: Any) -> str:
    """Abstract text from the first node carrying one (`$` or `p` paragraphs)."""
    for node in nodes:
        abstract = get_path(node, "abstract")
        if abstract is None:
            continue
        text = text_at(abstract)
        if text:
            return text
        paragraphs = [text_of(p) for p in as_list(get_path(abstract, "p"))]
        text = " ".join(p.strip() for p in paragraphs if p.strip())
        if text:
            return text
    return ""


def _party_names(biblio: Any, group: str, party: str) -> List[str]:
    names: List[str] = []
    for entry in as_list(get_path(biblio, "parties", group, party)):
        name = text_at(entry, f"{party}-name") or text_at(entry, f"{party}-name", "name")
        if name:
            names.append(name)
    return names


def _text_or_attr(node: Any, name: str) -> str:
    return text_at(node, name) or text_at(node, f"@{name}")


def _document_date(node: Any, reference: str) -> str:
    return text_at(node, reference, "document-id", "date")


def normalize_search(payload: Any, query: str, status: int = 200) -> Dict[str, Any]:
    """
    Normalize a `/published-data/search` response.

    Each exchange-document becomes one result whose id is the document's
    doc-number followed by its kind code.
    """
    search = _envelope(payload, "ops:biblio-search")
    results: List[Dict[str, str]] = []
    for entry in as_list(get_path(search, "ops:search-result", "exchange-documents")):
        document = first(get_path(entry, "exchange-document"), default={})
        biblio = get_path(document, "bibliographic-data", default={})
        results.append(
            {
                "id": f"{text_at(document, '@doc-number')}{text_at(document, '@kind')}",
                "title": _title(biblio),
                "abstract": _abstract(biblio, document),
                "publication_date": _document_date(biblio, "publication-reference"),
            }
        )

    total_text = text_at(search, "@total-result-count")
    total = int(total_text) if total_text.isdigit() else len(results)
    return {
        "status": status,
        "data": {"query": query, "total": total, "results": results},
    }


def normalize_bibliographic_data(payload: Any) -> Dict[str, Any]:
    """Normalize a `/published-data/.../biblio` response (first document wins)."""
    container = first(_envelope(payload, "exchange-documents"), default={})
    document = first(get_path(container, "exchange-document"), default={})
    biblio = get_path(document, "bibliographic-data", default={})

    classification: List[str] = []
    for entry in as_list(get_path(biblio, "patent-classifications", "patent-classification")):
        code = "".join(text_at(entry, part) for part in ("section", "class", "subclass"))
        if code:
            classification.append(code)

    return {
        "title": _title(biblio),
        "abstract": _abstract(biblio, document),
        "inventors": _party_names(biblio, "inventors", "inventor"),
        "applicants": _party_names(biblio, "applicants", "applicant"),
        "publication_date": _document_date(biblio, "publication-reference"),
        "application_date": _document_date(biblio, "application-reference"),
        "priority_date": text_at(
            biblio, "priority-claims", "priority-claim", "document-id", "date"
        ),
        "classification": classification,
    }


def normalize_claims(payload: Any) -> Dict[str, Any]:
    """Split the single upstream claim list into independent and dependent claims."""
    independent: List[str] = []
    dependent: List[str] = []
    for claim in as_list(_envelope(payload, "ops:document", "claims", "claim")):
        text = text_of(claim) or " ".join(
            text_of(part) for part in as_list(get_path(claim, "claim-text"))
        )
        claim_type = text_at(claim, "@type")
        if claim_type == "independent":
            independent.append(text)
        elif claim_type == "dependent":
            dependent.append(text)
    return {"independent": independent, "dependent": dependent}


def normalize_family(payload: Any) -> List[Dict[str, Any]]:
    """
    Normalize a `/family/...` response into one record per family member.

    The publication document-id may be a single object or a list; with a list
    the first entry is authoritative.
    """
    members: List[Dict[str, Any]] = []
    for member in as_list(_envelope(payload, "ops:patent-family", "family-member")):
        document_id = first(get_path(member, "publication-reference", "document-id"), default={})
        country = text_at(document_id, "country")
        kind = text_at(document_id, "kind")
        members.append(
            {
                "publication_number": f"{country}{text_at(document_id, 'doc-number')}{kind}",
                "publication_date": text_at(document_id, "date"),
                "title": _title(member),
                "abstract": _abstract(member),
                "country": country,
                "kind": kind,
            }
        )
    return members


def normalize_legal_status(payload: Any) -> List[Dict[str, Any]]:
    """Normalize a `/legal/...` response into one record per legal event."""
    events: List[Dict[str, Any]] = []
    for status_entry in as_list(_envelope(payload, "ops:legal-status-data", "legal-status")):
        for event in as_list(get_path(status_entry, "legal-event")):
            events.append(
                {
                    "status": _text_or_attr(event, "code"),
                    "date": _text_or_attr(event, "date"),
                    "description": text_at(event, "title"),
                    "country": _text_or_attr(event, "country"),
                }
            )
    return events


def _classification_node(item: Any) -> Dict[str, str]:
    return {
        "code": _text_or_attr(item, "classification-symbol"),
        "title": text_at(item, "title-part") or text_at(item, "class-title"),
        "description": text_at(item, "description-part"),
    }


def _child_items(item: Any) -> List[Any]:
    children = get_path(item, "child-items")
    if isinstance(children, Mapping) and "classification-item" in children:
        children = children["classification-item"]
    return as_list(children)


def normalize_classification(payload: Any, status: int = 200) -> Dict[str, Any]:
    """Normalize a `/classification/{class}` response: primary node plus children."""
    item = first(_envelope(payload, "ops:classification-data", "classification-item"), default={})
    primary = _classification_node(item)
    return {
        "status": status,
        "data": {
            "class": primary["code"],
            "title": primary["title"],
            "description": primary["description"],
            "subclasses": [_classification_node(child) for child in _child_items(item)],
        },
    }


def normalize_classification_search(payload: Any, status: int = 200) -> Dict[str, Any]:
    """
    Normalize a `/classification/cpc/search` response.

    With no hits a fixed no-match record is returned. Otherwise the first hit
    is the primary node and the remaining hits are listed as subclasses.
    """
    hits = as_list(
        _envelope(
            payload,
            "ops:classification-search",
            "ops:search-result",
            "ops:classification-statistics",
        )
    )
    if not hits:
        return {
            "status": status,
            "data": {
                "class": "",
                "title": NO_CLASSIFICATION_MATCH_TITLE,
                "description": "",
                "subclasses": [],
            },
        }

    nodes = [_classification_node(hit) for hit in hits]
    primary = nodes[0]
    return {
        "status": status,
        "data": {
            "class": primary["code"],
            "title": primary["title"],
            "description": primary["description"],
            "subclasses": nodes[1:],
        },
    }


def normalize_number_conversion(
    payload: Any,
    reference: PatentReference,
    target_format: str,
    status: int = 200,
) -> Dict[str, Any]:
    """
    Normalize a `/number/convert/...` response.

    The input echo falls back to the caller's reference for any part the
    upstream omits.
    """
    standardization = _envelope(payload, "ops:standardization")
    input_node = first(
        get_path(standardization, "ops:input") or get_path(standardization, "input"),
        default={},
    )
    output_node = first(
        get_path(standardization, "ops:output") or get_path(standardization, "output"),
        default={},
    )
    return {
        "status": status,
        "data": {
            "input": {
                "type": text_at(input_node, "@type") or reference.kind,
                "format": text_at(input_node, "@format") or reference.format,
                "number": text_of(input_node) or reference.number,
            },
            "output": {
                "format": text_at(output_node, "@format") or target_format,
                "number": text_of(output_node),
            },
        },
    }
