# weddingsite/schemas.py
# =================================================================================
# 📦 SCHEMAS (Pydantic v2)
# ---------------------------------------------------------------------------------
# - Entradas: tipos laxos; las reglas de negocio (formatos, límites, mensajes)
#   viven en utils/validation.py y se aplican en los servicios.
# - Salidas: se serializan desde el ORM con from_attributes=True.
# =================================================================================

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =================================================================================
# 👪 Miembros del hogar
# =================================================================================
class HouseholdMemberIn(BaseModel):
    first_name: str
    last_name: str
    relationship_to_bride: Optional[str] = None
    relationship_to_groom: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Household member names are required.")
        return v


class HouseholdMemberOut(HouseholdMemberIn):
    model_config = ConfigDict(from_attributes=True)


# =================================================================================
# 👤 Usuarios
# =================================================================================
class AddressFields(BaseModel):
    street_address: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class UserOut(AddressFields):
    id: int
    email: str
    full_name: str
    is_admin: bool
    is_invited: bool
    has_rsvped: bool
    qr_token: str
    qr_alias: Optional[str] = None
    qr_alias_locked: bool = False
    rsvp_id: Optional[int] = None

    relationship_to_bride: Optional[str] = None
    relationship_to_groom: Optional[str] = None
    custom_welcome_message: Optional[str] = None
    guest_group: Optional[str] = None
    plus_one_allowed: bool = False
    personal_photo: Optional[str] = None
    special_instructions: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    household_members: List[HouseholdMemberOut] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# =================================================================================
# 🔐 Autenticación
# =================================================================================
class QrLoginRequest(BaseModel):
    qr_token: str


class RegisterRequest(BaseModel):
    full_name: str
    email: str
    qr_token: str


class AuthPayload(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


# =================================================================================
# 📋 RSVP
# =================================================================================
class RSVPGuestIn(BaseModel):
    full_name: Optional[str] = None
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None


class RSVPGuestOut(BaseModel):
    full_name: str
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RSVPCreate(BaseModel):
    attending: str
    guest_count: Optional[int] = None
    guests: Optional[List[RSVPGuestIn]] = None
    additional_notes: Optional[str] = None
    # Formulario legado (un solo invitado)
    full_name: Optional[str] = None
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None


class RSVPUpdate(BaseModel):
    attending: Optional[str] = None
    guest_count: Optional[int] = None
    guests: Optional[List[RSVPGuestIn]] = None
    additional_notes: Optional[str] = None
    full_name: Optional[str] = None
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None


class RSVPSubmit(BaseModel):
    attending: str
    full_name: Optional[str] = None
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None
    additional_notes: Optional[str] = None


class RSVPOut(BaseModel):
    id: int
    user_id: int
    attending: str
    guest_count: int
    guests: List[RSVPGuestOut] = []
    additional_notes: Optional[str] = None
    full_name: Optional[str] = None
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class UserWithRSVP(UserOut):
    rsvp: Optional[RSVPOut] = None


# =================================================================================
# 📊 Estadísticas
# =================================================================================
class MealPreferenceCount(BaseModel):
    preference: str
    count: int


class WeddingStats(BaseModel):
    total_invited: int
    total_rsvped: int
    total_attending: int
    total_not_attending: int
    total_maybe: int
    rsvp_percentage: float
    meal_preferences: List[MealPreferenceCount]
    dietary_restrictions: List[str]


# =================================================================================
# 👑 Administración
# =================================================================================
class AdminCreateUser(AddressFields):
    full_name: str
    email: str
    is_invited: bool = True


class AdminUpdateUser(AddressFields):
    full_name: Optional[str] = None
    email: Optional[str] = None
    is_invited: Optional[bool] = None
    qr_alias: Optional[str] = None
    qr_alias_locked: Optional[bool] = None


class PersonalizationIn(AddressFields):
    qr_alias: Optional[str] = None
    relationship_to_bride: Optional[str] = None
    relationship_to_groom: Optional[str] = None
    custom_welcome_message: Optional[str] = None
    guest_group: Optional[str] = None
    plus_one_allowed: Optional[bool] = None
    personal_photo: Optional[str] = None
    special_instructions: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    household_members: Optional[List[HouseholdMemberIn]] = None


class AdminRSVPUpdate(BaseModel):
    attending: Optional[str] = None
    guest_count: Optional[int] = None
    guests: Optional[List[RSVPGuestIn]] = None
    additional_notes: Optional[str] = None
    full_name: Optional[str] = None
    meal_preference: Optional[str] = None
    allergies: Optional[str] = None


class BulkPersonalizationItem(BaseModel):
    email: str
    full_name: Optional[str] = None
    personalization: PersonalizationIn = Field(default_factory=PersonalizationIn)


class BulkPersonalizationPayload(BaseModel):
    items: List[BulkPersonalizationItem]


class BulkRowError(BaseModel):
    email: str
    error: str


class BulkPersonalizationResult(BaseModel):
    success: bool
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[BulkRowError] = []
    warnings: List[str] = []


class CsvImportResult(BulkPersonalizationResult):
    parse_errors: List[str] = []


class QRRegenerateResult(BaseModel):
    success: int
    failed: int
    errors: List[str] = []


class ReminderResult(BaseModel):
    success: bool
    email: str
    error: Optional[str] = None


class BulkReminderPayload(BaseModel):
    user_ids: Optional[List[int]] = None


class BulkReminderResult(BaseModel):
    total_sent: int
    success_count: int
    failure_count: int
    results: List[ReminderResult]


class EmailJobOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_email: str
    user_name: str
    template: str
    status: str
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    sent_at: Optional[datetime] = None
