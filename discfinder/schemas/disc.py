from decimal import Decimal

from pydantic import BaseModel, field_validator

# (min, max) per flight number; speed is the one printed on every disc
FLIGHT_NUMBER_RANGES = {
    "speed": (1, 14),
    "glide": (1, 7),
    "turn": (-5, 1),
    "fade": (0, 5),
}


def _check_range(name: str, value: float | None) -> float | None:
    if value is None:
        return value
    lo, hi = FLIGHT_NUMBER_RANGES[name]
    if not lo <= value <= hi:
        raise ValueError(f"{name.capitalize()} must be between {lo} and {hi}")
    return value


class FlightNumbers(BaseModel):
    speed: float | None = None
    glide: float | None = None
    turn: float | None = None
    fade: float | None = None

    @field_validator("speed", "glide", "turn", "fade")
    @classmethod
    def within_range(cls, v: float | None, info) -> float | None:
        return _check_range(info.field_name, v)

    def as_json(self) -> dict:
        # 12.0 -> 12 so stored numbers look like the ones printed on the disc
        return {k: (int(v) if v is not None and float(v).is_integer() else v) for k, v in self.model_dump().items()}


class DiscFields(BaseModel):
    mold: str | None = None
    manufacturer: str | None = None
    plastic: str | None = None
    color: str | None = None
    weight: int | None = None
    flight_numbers: FlightNumbers | None = None
    reward_amount: Decimal | None = None
    notes: str | None = None

    @field_validator("weight")
    @classmethod
    def weight_range(cls, v: int | None) -> int | None:
        if v is not None and not 1 <= v <= 200:
            raise ValueError("Weight must be between 1 and 200 grams")
        return v

    @field_validator("reward_amount")
    @classmethod
    def reward_not_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Reward amount cannot be negative")
        return v


class CreateDiscRequest(DiscFields):
    # Accepted for older clients; the stored name always follows mold
    name: str | None = None


class UpdateDiscRequest(DiscFields):
    disc_id: int | None = None


class DiscIdRequest(BaseModel):
    disc_id: int | None = None


class AssignQRCodeRequest(BaseModel):
    disc_id: int | None = None
    short_code: str | None = None
