import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


class Reactive(BaseModel):
    """A tracked medication, stored exactly as the mobile client sends it."""

    # Keys written by other client versions ride along on rewrites.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str
    quantity: str
    times: list[str] = Field(default_factory=list)
    start_date: str = Field(alias="startDate")
    duration: str
    color: str
    reminder_enabled: bool = Field(alias="reminderEnabled")
    current_supply: int = Field(alias="currentSupply")
    total_supply: int = Field(alias="totalSupply")
    refill_at: int = Field(alias="refillAt")
    refill_reminder: bool = Field(alias="refillReminder")
    last_refill_date: str | None = Field(default=None, alias="lastRefillDate")

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ReactiveIn(BaseModel):
    """Request body for creating or replacing a reactive."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str = Field(min_length=1, max_length=200)
    quantity: str = Field(min_length=1, max_length=120)
    times: list[str] = Field(default_factory=list)
    start_date: str = Field(alias="startDate")
    duration: str = "ongoing"
    color: str = "#4CAF50"
    reminder_enabled: bool = Field(default=True, alias="reminderEnabled")
    current_supply: int = Field(default=0, ge=0, alias="currentSupply")
    total_supply: int = Field(default=0, ge=0, alias="totalSupply")
    refill_at: int = Field(default=0, ge=0, alias="refillAt")
    refill_reminder: bool = Field(default=False, alias="refillReminder")
    last_refill_date: str | None = Field(default=None, alias="lastRefillDate")

    @field_validator("times")
    @classmethod
    def validate_times(cls, value: list[str]) -> list[str]:
        for t in value:
            if not _TIME_PATTERN.match(t):
                raise ValueError(f"Invalid time '{t}', expected HH:MM")
        return value

    def to_reactive(self, reactive_id: str) -> Reactive:
        data = self.model_dump(exclude={"id"})
        return Reactive(id=reactive_id, **data)


class DoseHistory(BaseModel):
    """One taken/skipped dose event. Never updated once written."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    id: str
    reactive_id: str = Field(alias="reactiveId")
    timestamp: str
    taken: bool

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


class DoseRecordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reactive_id: str = Field(alias="reactiveId", min_length=1)
    taken: bool
    timestamp: str | None = None
