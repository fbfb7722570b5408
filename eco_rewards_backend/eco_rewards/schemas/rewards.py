from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def _not_blank(value: Optional[str], name: str) -> Optional[str]:
    if value is not None and value.strip() == "":
        raise ValueError(f"{name} must not be blank")
    return value.strip() if value is not None else None


class Page(_BaseSchema):
    total: int = Field(..., description="Total number of records available (ignores pagination)")
    limit: int = Field(..., description="Page size limit used for this response", ge=1)
    offset: int = Field(..., description="Offset used for this response", ge=0)


class SchemeBase(_BaseSchema):
    name: str = Field(..., description="Scheme name", max_length=200)
    vac_client_id: Optional[int] = Field(None, description="Client id in the ticketing back office")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "name")


class SchemeCreate(SchemeBase):
    pass


class SchemeRead(SchemeBase):
    id: int = Field(..., description="Scheme id")


class SchemeListResponse(Page):
    items: list[SchemeRead] = Field(..., description="Schemes in the current page")


class OrganisationBase(_BaseSchema):
    name: str = Field(..., description="Organisation name", max_length=200)
    scheme_id: int = Field(..., description="Scheme the organisation belongs to")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "name")


class OrganisationCreate(OrganisationBase):
    pass


class OrganisationRead(OrganisationBase):
    id: int = Field(..., description="Organisation id")


class OrganisationListResponse(Page):
    items: list[OrganisationRead] = Field(..., description="Organisations in the current page")


class GroupBase(_BaseSchema):
    name: str = Field(..., description="Group name", max_length=200)
    organisation_id: int = Field(..., description="Organisation the group belongs to")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "name")


class GroupCreate(GroupBase):
    pass


class GroupRead(GroupBase):
    id: int = Field(..., description="Group id")


class GroupListResponse(Page):
    items: list[GroupRead] = Field(..., description="Groups in the current page")


class MemberDefaults(_BaseSchema):
    group: int = Field(..., description="Group the new members join")
    default_transport_mode: str = Field(..., description="Transport mode used when a journey omits one", max_length=50)
    default_distance: float = Field(..., description="Distance (km) used when a journey omits one", ge=0)

    @field_validator("default_transport_mode")
    @classmethod
    def _mode_not_blank(cls, v: str) -> str:
        return _not_blank(v, "defaultTransportMode").lower()


class MembersCreate(MemberDefaults):
    """Bulk creation of identical members."""

    quantity: int = Field(..., description="Number of members to create", ge=1, le=1000)


class MemberAccountCreate(MemberDefaults):
    """Creation of a single member, optionally tied to a smartcard."""

    smartcard: Optional[str] = Field(None, description="Smartcard identifier", max_length=100)

    @field_validator("smartcard")
    @classmethod
    def _smartcard_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _not_blank(v, "smartcard")


class MemberRead(_BaseSchema):
    id: int = Field(..., description="Member id")
    group: int = Field(
        ...,
        description="Group id",
        validation_alias=AliasChoices("member_group_id", "group"),
    )
    rewards: int = Field(..., description="Rewards earned so far", ge=0)
    carbon_saving: float = Field(..., description="Cumulative carbon saving (kg CO2e)", ge=0)
    default_transport_mode: Optional[str] = Field(None, description="Default transport mode")
    default_distance: Optional[float] = Field(None, description="Default distance (km)")
    smartcard: Optional[str] = Field(None, description="Smartcard identifier")


class MemberListResponse(Page):
    items: list[MemberRead] = Field(..., description="Members in the current page")


class JourneyCreate(_BaseSchema):
    """A single journey submission. Values are validated by the journey factory."""

    member_id: Union[int, str] = Field(..., description="Member id or smartcard")
    date: str = Field(..., description="Travel date (YYYY-MM-DD)")
    mode: Optional[str] = Field(None, description="Transport mode; defaults to the member's")
    distance: Optional[Union[float, str]] = Field(None, description="Distance in km; defaults to the member's")


class JourneyRead(_BaseSchema):
    id: int = Field(..., description="Journey id")
    member_id: int = Field(..., description="Member id")
    travel_date: date = Field(..., description="Travel date")
    mode: str = Field(..., description="Transport mode")
    distance: float = Field(..., description="Distance in km")
    sequence_number: int = Field(..., description="Member's journey number within its submission")
    rewards: int = Field(..., description="Rewards earned by this journey")
    carbon_saving: float = Field(..., description="Carbon saving earned by this journey (kg CO2e)")
    source: str = Field(..., description="`api` or `csv`")
    created_at: datetime = Field(..., description="Timestamp when the journey was stored")


class JourneyListResponse(Page):
    items: list[JourneyRead] = Field(..., description="Journeys in the current page")


class RowErrorRead(_BaseSchema):
    row: int = Field(..., description="Data row number (header excluded, starting at 1)")
    line: Optional[int] = Field(None, description="Physical line number in the uploaded file (header is line 1)")
    reasons: list[str] = Field(..., description="Why the row was rejected")


class ImportReportRead(_BaseSchema):
    imported: int = Field(..., description="Number of journeys stored")
    failed: int = Field(..., description="Number of rows rejected")
    errors: list[RowErrorRead] = Field(..., description="Rejected rows")
    ids: list[int] = Field(..., description="Stored journey ids, in row order")
    cancelled: bool = Field(False, description="Whether the import stopped early on request")


class LoginRequest(_BaseSchema):
    username: str = Field(..., description="Admin user email")
    password: str = Field(..., description="Admin user password")


class LoginResponse(_BaseSchema):
    token: str = Field(..., description="Bearer token for subsequent requests")
