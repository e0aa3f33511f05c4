"""
Pydantic schemas for customer endpoints.

Field names are snake_case in Python and camelCase on the wire
(nationalId, firstName, productCodes, ...). populate_by_name lets tests and
internal callers build models with either spelling.

Request validation mirrors what the boundary must reject before the
customer service is invoked: national ID of 7-8 digits, non-blank names,
a mobile number made of digits/spaces/parentheses/hyphens and at least one
product code.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BankingProductResponse(CamelModel):
    code: str
    description: str


class CustomerCreateRequest(CamelModel):
    """Request body for POST /api/clientes (and each item of /batch)."""
    national_id: str = Field(min_length=7, max_length=8, pattern=r"^[0-9]+$")
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    street: str | None = Field(None, max_length=255)
    number: int | None = None
    postal_code: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, max_length=30)
    mobile: str | None = Field(None, max_length=30, pattern=r"^[0-9\s()-]+$")
    product_codes: list[str] = Field(min_length=1)

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def customer_fields(self) -> dict:
        """Column values for the Customer row (everything but product codes)."""
        return self.model_dump(exclude={"product_codes"})


class PhoneUpdateRequest(CamelModel):
    """
    Request body for PATCH /api/clientes/{nationalId}/telefono.

    nationalId is optional; when present it must match the path.
    """
    national_id: str | None = None
    new_phone: str = Field(min_length=1, max_length=30)

    @field_validator("new_phone")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PhoneBatchItem(PhoneUpdateRequest):
    """One entry of PATCH /api/clientes/telefono/batch."""
    national_id: str = Field(min_length=1)


class CustomerResponse(CamelModel):
    """Public representation of a customer and its banking products."""
    id: uuid.UUID
    national_id: str
    first_name: str
    last_name: str
    street: str | None
    number: int | None
    postal_code: str | None
    phone: str | None
    mobile: str | None
    products: list[BankingProductResponse]


class CustomerDeletedResponse(CamelModel):
    message: str = "Customer deleted successfully"
    national_id: str
