# models.py

import json
from dataclasses import dataclass
from typing import Optional, Tuple

from config import DESCRIPTION_FIELDS, DOCUMENT_FIELDS, PRODUCT_FIELDS
from errors import SerializationError


# ─── Records ─────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Description:
    participant_inn: Optional[str] = None


@dataclass(frozen=True)
class Product:
    certificate_document:        Optional[str] = None
    certificate_document_date:   Optional[str] = None
    certificate_document_number: Optional[str] = None
    owner_inn:                   Optional[str] = None
    producer_inn:                Optional[str] = None
    production_date:             Optional[str] = None
    tnved_code:                  Optional[str] = None
    uit_code:                    Optional[str] = None
    uitu_code:                   Optional[str] = None


@dataclass(frozen=True)
class Document:
    """A 'goods produced in the RF' introduction document."""
    description:     Optional[Description] = None
    doc_id:          Optional[str] = None
    doc_status:      Optional[str] = None
    doc_type:        Optional[str] = None
    import_request:  bool = False
    owner_inn:       Optional[str] = None
    participant_inn: Optional[str] = None
    producer_inn:    Optional[str] = None
    production_date: Optional[str] = None
    production_type: Optional[str] = None
    products:        Optional[Tuple[Product, ...]] = None
    reg_date:        Optional[str] = None
    reg_number:      Optional[str] = None

    def __post_init__(self):
        # freeze list input so the record stays immutable
        if self.products is not None and not isinstance(self.products, tuple):
            object.__setattr__(self, 'products', tuple(self.products))


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body:        str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


# ─── Encoding ────────────────────────────────────────────────────────────────────
def _encode_record(record, names: dict) -> dict:
    """Map a flat record onto its wire names, skipping None values."""
    return {
        wire: getattr(record, attr)
        for attr, wire in names.items()
        if getattr(record, attr) is not None
    }


def document_to_payload(document: Document) -> dict:
    """
    Build the JSON-ready dict for one document.
    Unset (None) fields are omitted; importRequest is always present.
    """
    if not isinstance(document, Document):
        raise SerializationError(f"Expected a Document, got {type(document).__name__}")

    payload = {}
    for attr, wire in DOCUMENT_FIELDS.items():
        value = getattr(document, attr)
        if value is None:
            continue
        if attr == 'description':
            if not isinstance(value, Description):
                raise SerializationError(f"description must be a Description, got {type(value).__name__}")
            value = _encode_record(value, DESCRIPTION_FIELDS)
        elif attr == 'products':
            items = []
            for p in value:
                if not isinstance(p, Product):
                    raise SerializationError(f"products must hold Product entries, got {type(p).__name__}")
                items.append(_encode_record(p, PRODUCT_FIELDS))
            value = items
        payload[wire] = value
    return payload


def document_to_json(document: Document) -> str:
    try:
        return json.dumps(document_to_payload(document), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Could not serialize document: {e}") from e


# ─── Decoding ────────────────────────────────────────────────────────────────────
def _decode_record(cls, data, names: dict):
    if not isinstance(data, dict):
        raise SerializationError(f"{cls.__name__} must be a JSON object, got {type(data).__name__}")
    by_wire = {wire: attr for attr, wire in names.items()}
    unknown = set(data) - set(by_wire)
    if unknown:
        raise SerializationError(f"Unknown {cls.__name__} field(s): {', '.join(sorted(unknown))}")
    return {by_wire[k]: v for k, v in data.items()}


def document_from_payload(data: dict) -> Document:
    """Inverse of document_to_payload; accepts the API's wire names."""
    kwargs = _decode_record(Document, data, DOCUMENT_FIELDS)

    if kwargs.get('description') is not None:
        kwargs['description'] = Description(**_decode_record(Description, kwargs['description'], DESCRIPTION_FIELDS))

    if kwargs.get('products') is not None:
        if not isinstance(kwargs['products'], list):
            raise SerializationError("products must be a JSON array")
        kwargs['products'] = tuple(
            Product(**_decode_record(Product, p, PRODUCT_FIELDS)) for p in kwargs['products']
        )

    if kwargs.get('import_request') is None:
        kwargs.pop('import_request', None)
    elif not isinstance(kwargs['import_request'], bool):
        raise SerializationError("importRequest must be a boolean")

    return Document(**kwargs)


__all__ = [
    'Description', 'Product', 'Document', 'ApiResponse',
    'document_to_payload', 'document_to_json', 'document_from_payload',
]

