"""Pydantic schemas for the JSON request and response documents.

The domain dataclasses stay free of parsing concerns; these models
validate incoming documents, translate the camelCase wire names and map
to and from the domain types. Any schema violation surfaces as
InvalidInputError.
"""

import datetime as dt
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveInt,
    StrictBool,
    StrictInt,
    StrictStr,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_serializer,
)

from dutyrota.domain.errors import InvalidInputError
from dutyrota.domain.holidays import HolidayCalendar
from dutyrota.domain.models import (
    DEFAULT_RETRY_BUDGET,
    Assignment,
    AssignmentKind,
    DateRange,
    Override,
    Participant,
    RotationConfig,
    Schedule,
    ScheduleRequest,
    ScheduleResult,
)

# Ids are opaque: ints stay ints, strings stay strings
ParticipantIdField = Union[StrictInt, StrictStr]
KindField = Literal["duty", "rest"]
HolidayField = Annotated[StrictStr, StringConstraints(pattern=r"^\d{2}-\d{2}$")]


def _validate(adapter: Any, data: Any, what: str) -> Any:
    """Run a pydantic validation, re-raising failures as InvalidInputError."""
    try:
        if isinstance(adapter, TypeAdapter):
            return adapter.validate_python(data)
        return adapter.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid {what}: {exc}") from exc


class ParticipantSchema(BaseModel):
    id: ParticipantIdField
    name: Optional[StrictStr] = None

    def to_domain(self) -> Participant:
        name = self.name if self.name is not None else str(self.id)
        return Participant(id=self.id, name=name)


class OverrideSchema(BaseModel):
    date: dt.date
    kind: KindField
    label: Optional[StrictStr] = None

    def to_domain(self) -> Override:
        return Override(
            date=self.date,
            kind=AssignmentKind(self.kind),
            label=self.label or None,
        )


class ScheduleRequestSchema(BaseModel):
    """Request document.

    ``holidays`` is either the string "default" (built-in calendar), a
    list of "MM-DD" strings, or absent for no holidays.
    """

    model_config = ConfigDict(populate_by_name=True)

    roster: list[ParticipantSchema]
    start: dt.date
    end: dt.date
    include_saturday: StrictBool = Field(False, alias="includeSaturday")
    include_sunday: StrictBool = Field(False, alias="includeSunday")
    overrides: list[OverrideSchema] = Field(default_factory=list)
    retry_budget: PositiveInt = Field(DEFAULT_RETRY_BUDGET, alias="retryBudget", strict=True)
    holidays: Union[Literal["default"], list[HolidayField], None] = None

    def to_domain(self) -> ScheduleRequest:
        if self.holidays is None:
            holidays = HolidayCalendar.empty()
        elif self.holidays == "default":
            holidays = HolidayCalendar.default()
        else:
            holidays = HolidayCalendar.from_strings(self.holidays)

        return ScheduleRequest(
            roster=[p.to_domain() for p in self.roster],
            date_range=DateRange(self.start, self.end),
            config=RotationConfig(
                include_saturday=self.include_saturday,
                include_sunday=self.include_sunday,
                overrides=[o.to_domain() for o in self.overrides],
                retry_budget=self.retry_budget,
            ),
            holidays=holidays,
        )


class AssignmentSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: KindField
    label: StrictStr
    participant_id: Optional[ParticipantIdField] = Field(None, alias="participantId")
    assigned_at: dt.datetime = Field(alias="assignedAt")

    @field_serializer("assigned_at")
    def _serialize_assigned_at(self, value: dt.datetime) -> str:
        return value.isoformat()

    @classmethod
    def from_domain(cls, assignment: Assignment) -> "AssignmentSchema":
        return cls(
            kind=assignment.kind.value,
            label=assignment.label,
            participant_id=assignment.participant_id,
            assigned_at=assignment.assigned_at,
        )

    def to_domain(self, day: dt.date) -> Assignment:
        return Assignment(
            date=day,
            kind=AssignmentKind(self.kind),
            label=self.label,
            participant_id=self.participant_id,
            assigned_at=self.assigned_at,
        )


class ParticipantStatsSchema(BaseModel):
    name: StrictStr
    count: NonNegativeInt


class ScheduleResultSchema(BaseModel):
    """Response document. ``retriesUsed`` only when balanced,
    ``warningMessage`` only when not."""

    model_config = ConfigDict(populate_by_name=True)

    schedule: dict[dt.date, AssignmentSchema]
    stats: dict[ParticipantIdField, ParticipantStatsSchema]
    balanced: StrictBool
    retries_used: Optional[PositiveInt] = Field(None, alias="retriesUsed")
    warning_message: Optional[StrictStr] = Field(None, alias="warningMessage")

    @field_serializer("schedule")
    def _serialize_schedule(self, schedule: dict[dt.date, AssignmentSchema]) -> dict:
        return _assignments_to_json(schedule)

    @classmethod
    def from_domain(cls, result: ScheduleResult) -> "ScheduleResultSchema":
        return cls(
            schedule={d: AssignmentSchema.from_domain(a) for d, a in result.schedule.items()},
            stats={
                pid: ParticipantStatsSchema(name=s.name, count=s.count)
                for pid, s in result.stats.items()
            },
            balanced=result.balanced,
            retries_used=result.retries_used,
            warning_message=result.warning_message,
        )

    def dump(self) -> dict:
        """Serialize with wire names, keeping participant ids as given."""
        omitted = {"warning_message"} if self.balanced else {"retries_used"}
        return self.model_dump(by_alias=True, exclude=omitted)


_SCHEDULE_ADAPTER = TypeAdapter(dict[dt.date, AssignmentSchema])


def _assignments_to_json(assignments: Mapping[dt.date, AssignmentSchema]) -> dict:
    return {d.isoformat(): a.model_dump(by_alias=True) for d, a in assignments.items()}


def parse_request(data: Any) -> ScheduleRequest:
    """Validate a request document and build the domain request.

    Raises:
        InvalidInputError: If the document does not match the schema, or
            describes an impossible range or holiday.
    """
    return _validate(ScheduleRequestSchema, data, "request").to_domain()


def dump_schedule(schedule: Schedule) -> dict:
    """Serialize a schedule as ISO date string -> assignment document."""
    return _assignments_to_json(
        {d: AssignmentSchema.from_domain(a) for d, a in schedule.items()}
    )


def parse_schedule(data: Any) -> Schedule:
    """Rebuild a schedule serialized by ``dump_schedule``."""
    parsed = _validate(_SCHEDULE_ADAPTER, data, "schedule")
    return Schedule({d: a.to_domain(d) for d, a in parsed.items()})


def dump_result(result: ScheduleResult) -> dict:
    """Serialize a result to the response document."""
    return ScheduleResultSchema.from_domain(result).dump()
