"""Schemas for couple rows: upload results and the raw-data listing."""

from pydantic import BaseModel, Field


class CoupleRow(BaseModel):
    """A spreadsheet row after coercion and validation.

    `row_number` is the 1-based sheet row the values came from.
    """

    row_number: int = Field(ge=2)
    couple_no: int
    men_age: int = Field(ge=0)
    women_age: int = Field(ge=0)
    marriage_duration: int = Field(ge=0)
    travel_plan: str = Field(min_length=1, max_length=255)

    model_config = {"frozen": True}

    def to_insert_params(self) -> dict[str, int | str]:
        """Column values for the couples table (avg_age is computed by the DB)."""
        return {
            "couple_no": self.couple_no,
            "men_age": self.men_age,
            "women_age": self.women_age,
            "marriage_duration": self.marriage_duration,
            "travel_plan": self.travel_plan,
        }


class UploadResponse(BaseModel):
    """Response payload for POST /upload."""

    success: bool
    message: str
    count: int = Field(ge=0)


class RawCoupleRow(BaseModel):
    """A stored couple as shown in the raw-data table."""

    couple_no: int = Field(alias="Couple No")
    men_age: int = Field(alias="Men Age")
    women_age: int = Field(alias="Women Age")
    marriage_duration: int = Field(alias="Marriage Age (years)")
    travel_plan: str = Field(alias="Travel Plan")

    model_config = {"populate_by_name": True}


class RawDataPage(BaseModel):
    """Response payload for GET /api/raw-data."""

    data: list[RawCoupleRow]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total_pages: int = Field(alias="totalPages", ge=0)

    model_config = {"populate_by_name": True}
