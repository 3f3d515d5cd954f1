from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class EntryTypeFilter(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    ANY = "any"


class MetadataAttribute(str, Enum):
    NAME = "name"
    ENTRY_TYPE = "entry_type"
    MIME_TYPE = "mime_type"
    SIZE_BYTES = "size_bytes"
    CREATED_AT = "created_at"
    MODIFIED_AT = "modified_at"


class StringOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    MATCHES_REGEX = "matches_regex"


class NumericOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


class DateOperator(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    ON_DATE = "on_date"


STRING_ATTRIBUTES = (
    MetadataAttribute.NAME,
    MetadataAttribute.ENTRY_TYPE,
    MetadataAttribute.MIME_TYPE,
)
DATE_ATTRIBUTES = (MetadataAttribute.CREATED_AT, MetadataAttribute.MODIFIED_AT)

_ATTRIBUTE_ALIASES = {
    "created_at_iso": MetadataAttribute.CREATED_AT.value,
    "modified_at_iso": MetadataAttribute.MODIFIED_AT.value,
    "type": MetadataAttribute.ENTRY_TYPE.value,
}


class EntryInfo(BaseModel):
    """Descriptor of one filesystem object."""

    name: str
    path: str
    type: EntryType
    size_bytes: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: str
    modified_at: str
    last_accessed_at: Optional[str] = None
    is_readonly: Optional[bool] = None
    symlink_target: Optional[str] = None
    permissions_octal: Optional[str] = None
    permissions_string: Optional[str] = None
    children: Optional[List["EntryInfo"]] = None
    recursive_size_calculation_note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class NamePatternCriterion(BaseModel):
    type: Literal["name_pattern"] = "name_pattern"
    pattern: str


class ContentPatternCriterion(BaseModel):
    type: Literal["content_pattern"] = "content_pattern"
    pattern: str
    is_regex: bool = False
    case_sensitive: Optional[bool] = None
    file_types_to_search: Optional[List[str]] = None


class MetadataFilterCriterion(BaseModel):
    type: Literal["metadata_filter"] = "metadata_filter"
    attribute: MetadataAttribute
    operator: Union[StringOperator, NumericOperator, DateOperator]
    value: Any = None
    case_sensitive: Optional[bool] = None

    @field_validator("attribute", mode="before")
    @classmethod
    def _accept_attribute_aliases(cls, v):
        if isinstance(v, str):
            return _ATTRIBUTE_ALIASES.get(v, v)
        return v


MatchCriterion = Annotated[
    Union[NamePatternCriterion, ContentPatternCriterion, MetadataFilterCriterion],
    Field(discriminator="type"),
]


class FindParameters(BaseModel):
    base_path: str
    # None means the caller did not say; a non-directory base is then evaluated itself
    recursive: Optional[bool] = None
    match_criteria: List[MatchCriterion] = Field(default_factory=list)
    entry_type_filter: EntryTypeFilter = EntryTypeFilter.ANY

    model_config = ConfigDict(extra="forbid")


class ListOperation(str, Enum):
    ENTRIES = "entries"
    SYSTEM_INFO = "system_info"


class SystemInfoType(str, Enum):
    SERVER_CAPABILITIES = "server_capabilities"
    FILESYSTEM_STATS = "filesystem_stats"


class ListParameters(BaseModel):
    operation: ListOperation = ListOperation.ENTRIES
    path: Optional[str] = None
    recursive_depth: int = Field(default=0, ge=0)
    calculate_recursive_size: bool = False
    info_type: Optional[SystemInfoType] = None

    model_config = ConfigDict(extra="forbid")
