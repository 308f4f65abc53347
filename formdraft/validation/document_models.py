"""Authoring session models using Pydantic v2."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CustomerRef = Union[int, str]


class FormType(str, Enum):
    """Shape of the authored document."""

    SINGLE = "single"
    MULTI_STEP = "multi-step"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"


class EntryModeKind(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DUPLICATE = "duplicate"


class EntryMode(BaseModel):
    """Why the session started. Fixed for the lifetime of one session."""

    model_config = ConfigDict(frozen=True)

    kind: EntryModeKind
    existing_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_existing_id(self) -> "EntryMode":
        if self.kind is EntryModeKind.CREATE and self.existing_id is not None:
            raise ValueError("create mode does not take an existing_id")
        if self.kind is not EntryModeKind.CREATE and not self.existing_id:
            raise ValueError(f"{self.kind.value} mode requires an existing_id")
        return self

    @classmethod
    def create(cls) -> "EntryMode":
        return cls(kind=EntryModeKind.CREATE)

    @classmethod
    def edit(cls, existing_id: Union[int, str]) -> "EntryMode":
        return cls(kind=EntryModeKind.EDIT, existing_id=str(existing_id))

    @classmethod
    def duplicate(cls, existing_id: Union[int, str]) -> "EntryMode":
        return cls(kind=EntryModeKind.DUPLICATE, existing_id=str(existing_id))

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "EntryMode":
        """Derive the mode from entry parameters such as ``?edit=<id>``.

        ``edit`` takes precedence over ``duplicate``; neither means create.
        """
        edit_id = params.get("edit")
        if edit_id:
            return cls.edit(edit_id)
        duplicate_id = params.get("duplicate")
        if duplicate_id:
            return cls.duplicate(duplicate_id)
        return cls.create()

    @property
    def is_create(self) -> bool:
        return self.kind is EntryModeKind.CREATE

    @property
    def is_edit(self) -> bool:
        return self.kind is EntryModeKind.EDIT

    @property
    def is_duplicate(self) -> bool:
        return self.kind is EntryModeKind.DUPLICATE


class Section(BaseModel):
    """One named part of the document, holding an encoded fragment."""

    model_config = ConfigDict(extra="ignore")

    section_id: str
    section_name: str
    order: int = Field(ge=1)
    content_fragment: str


class DocumentMetadata(BaseModel):
    """Top-level fields of the authored document."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    form_type: FormType = FormType.SINGLE
    template_name: str = ""
    customer_id: Optional[CustomerRef] = None
    customer_name: str = ""
    sheet_url: str = ""
    description: str = ""
    status: DocumentStatus = DocumentStatus.DRAFT
    version: Optional[CustomerRef] = None  # set only from remote responses

    @field_validator("customer_name", "sheet_url", "description", "template_name", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value


# Fields the author may change through the controller.
EDITABLE_METADATA_FIELDS = frozenset(
    {"template_name", "customer_id", "customer_name", "sheet_url", "description", "status"}
)


class Document(DocumentMetadata):
    """Metadata plus ordered sections."""

    sections: List[Section] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_single_form(self) -> "Document":
        if self.form_type is FormType.SINGLE and self.sections:
            if len(self.sections) != 1 or self.sections[0].order != 1:
                raise ValueError("a single form holds exactly one section with order 1")
        return self

    @property
    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata(**self.model_dump(exclude={"sections"}))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DraftRecord(Document):
    """Document snapshot written to the draft slot (create mode only)."""

    selected_section_id: Optional[str] = None
    saved_at: str = Field(default_factory=utc_now_iso)


class RemoteSection(BaseModel):
    """One entry of a remote multi-step ``form_json.sections`` array."""

    model_config = ConfigDict(extra="ignore")

    section_id: Optional[str] = None
    section_name: Optional[str] = None
    order: Optional[int] = None
    form_json: Any = None

    @field_validator("section_id", "section_name", mode="before")
    @classmethod
    def _number_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RemoteDocument(BaseModel):
    """Tolerant view of a fetched template record.

    Accepts ``customer`` either as an id or as ``{id, customer_name}``, and
    ``customer_id`` directly, covering both backend contract revisions.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[CustomerRef] = None
    template_name: str = ""
    version: Optional[CustomerRef] = None
    status: Optional[DocumentStatus] = None
    description: Optional[str] = None
    sheet_url: Optional[str] = None
    customer_id: Optional[CustomerRef] = None
    customer_name: Optional[str] = None
    form_json: Any = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_customer(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        customer = data.pop("customer", None)
        if isinstance(customer, dict):
            if data.get("customer_id") is None:
                data["customer_id"] = customer.get("id")
            if not data.get("customer_name"):
                data["customer_name"] = customer.get("customer_name")
        elif customer is not None and data.get("customer_id") is None:
            data["customer_id"] = customer
        if data.get("template_name") is None:
            data["template_name"] = ""
        return data

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_to_none(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        try:
            return DocumentStatus(value)
        except ValueError:
            return None


class SectionPayload(BaseModel):
    section_id: str
    section_name: str
    order: int
    form_json: Any


class SavePayload(BaseModel):
    """Body sent to the remote create/update endpoints."""

    template_name: str
    customer_id: Optional[CustomerRef] = None
    customer_name: Optional[str] = None
    sheet_url: Optional[str] = None
    status: DocumentStatus = DocumentStatus.DRAFT
    description: Optional[str] = None
    form_json: Any

    @classmethod
    def from_document(
        cls,
        metadata: DocumentMetadata,
        sections: List[Section],
        decode: Optional[Callable[[Section], Any]] = None,
    ) -> "SavePayload":
        """Assemble the body from metadata and ordered sections.

        A single form sends its one section's content as ``form_json``; a
        multi-step form sends ``{"sections": [...]}``. ``decode`` turns a
        section's fragment into JSON data and defaults to ``json.loads``.
        """
        decode = decode or (lambda section: json.loads(section.content_fragment))
        if metadata.form_type is FormType.SINGLE:
            form_json: Any = decode(sections[0])
        else:
            form_json = {
                "sections": [
                    SectionPayload(
                        section_id=s.section_id,
                        section_name=s.section_name,
                        order=s.order,
                        form_json=decode(s),
                    ).model_dump()
                    for s in sections
                ]
            }
        return cls(
            template_name=metadata.template_name.strip(),
            customer_id=metadata.customer_id,
            customer_name=metadata.customer_name or None,
            sheet_url=metadata.sheet_url or None,
            status=metadata.status,
            description=metadata.description or None,
            form_json=form_json,
        )

    @property
    def sections(self) -> Optional[List[SectionPayload]]:
        if isinstance(self.form_json, dict) and "sections" in self.form_json:
            return [SectionPayload(**s) for s in self.form_json["sections"]]
        return None

    def to_request(self, customer_field: str = "customer") -> Dict[str, Any]:
        """Render the wire body, keyed by ``customer`` or ``customer_id``."""
        body: Dict[str, Any] = {
            "template_name": self.template_name,
            customer_field: self.customer_id,
            "status": self.status.value,
            "form_json": self.form_json,
        }
        if self.customer_name:
            body["customer_name"] = self.customer_name
        if self.sheet_url:
            body["sheet_url"] = self.sheet_url
        if self.description:
            body["description"] = self.description
        return body


class SaveDialogState(BaseModel):
    """What the host renders for the save form."""

    is_open: bool = False
    field_errors: Dict[str, List[str]] = Field(default_factory=dict)
    error_message: Optional[str] = None
