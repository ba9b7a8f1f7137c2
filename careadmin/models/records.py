"""
Domain models for patient, contact and ancillary records.

Field names follow the camelCase JSON the records are exported in; unknown
fields are kept so nothing is lost on a read-through.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Entity(RecordModel):
    """Top-level record stored in a repository.

    An empty ``id`` is replaced with a generated one when the record is added.
    """

    id: str = ""
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class CareManagement(RecordModel):
    care_management_type: Optional[str] = Field(None, alias="careManagementType")


class EpisodeDiagnosis(RecordModel):
    id: Optional[str] = None
    start_of_care: Optional[str] = Field(None, alias="startOfCare")
    first_diagnosis: Optional[str] = Field(None, alias="firstDiagnosis")
    second_diagnosis: Optional[str] = Field(None, alias="secondDiagnosis")


class AgencyInfo(RecordModel):
    """Agency-specific view of a patient."""

    filter_status: Optional[str] = Field(None, alias="filterStatus")
    patient_wav_id: Optional[str] = Field(None, alias="patientWAVId")
    patient_ehr_rec_id: Optional[str] = Field(None, alias="patientEHRRecId")
    first_name: Optional[str] = Field(None, alias="patientFName")
    middle_name: Optional[str] = Field(None, alias="patientMName")
    last_name: Optional[str] = Field(None, alias="patientLName")
    dob: Optional[str] = Field(None, description="MM/dd/yyyy")
    age: Optional[str] = None
    sex: Optional[str] = Field(None, alias="patientSex")
    status: Optional[str] = Field(None, alias="patientStatus")
    start_of_care: Optional[str] = Field(None, alias="startOfCare")
    care_management: Optional[List[CareManagement]] = Field(None, alias="careManagement")
    episode_diagnoses: Optional[List[EpisodeDiagnosis]] = Field(
        None, alias="episodeDiagnoses"
    )

    @property
    def primary_care_management_type(self) -> Optional[str]:
        if not self.care_management:
            return None
        return self.care_management[0].care_management_type


class Patient(Entity):
    created_by: Optional[str] = Field(None, alias="createdBy")
    is_billable: Optional[bool] = Field(None, alias="isBillable")
    is_pg_billable: Optional[bool] = Field(None, alias="isPgBillable")
    is_eligible: Optional[bool] = Field(None, alias="isEligible")
    is_pg_eligible: Optional[bool] = Field(None, alias="isPgEligible")
    agency_info: AgencyInfo = Field(default_factory=AgencyInfo, alias="agencyInfo")

    @property
    def full_name(self) -> str:
        return f"{self.agency_info.first_name or ''} {self.agency_info.last_name or ''}".strip()


class AssociatedEntity(RecordModel):
    """Organisation a contact or ancillary is linked to."""

    id: str
    entity_type: str = Field(..., alias="entityType")
    name: str
    job_title: Optional[str] = Field(None, alias="jobTitle")
    entity_subtype: Optional[str] = Field(None, alias="entitySubtype")


class ContactUser(Entity):
    contact_wav_id: str = Field(..., alias="contactWavId")
    associated_entities: List[AssociatedEntity] = Field(
        default_factory=list, alias="associatedEntities"
    )
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    job_title: Optional[str] = Field(None, alias="jobTitle")
    persona_type: Optional[str] = Field(None, alias="personaType")
    lifecycle_stage: Optional[str] = Field(None, alias="contactLifecycleStage")
    state: Optional[str] = None
    city: Optional[str] = None
    email: str
    phone_no: Optional[str] = Field(None, alias="phoneNo")
    contact_owner: Optional[str] = Field(None, alias="contactOwner")
    is_active: bool = Field(False, alias="isActive")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AncillaryUser(Entity):
    """Home health agency or other service provider."""

    entity_wav_id: str = Field(..., alias="entityWavId")
    name: str
    entity_type: str = Field(..., alias="entityType")
    entity_subtype: Optional[str] = Field(None, alias="entitySubtype")
    lifecycle_stage: Optional[str] = Field(None, alias="lifecycleStage")
    entity_npi_number: Optional[str] = Field(None, alias="entityNpiNumber")
    clinical_services: Optional[str] = Field(None, alias="clinicalServices")
    services: Optional[str] = None
    services_array: Optional[List[str]] = Field(None, alias="servicesArray")
    address_type: Optional[str] = Field(None, alias="addressType")
    state: Optional[str] = None
    city: Optional[str] = None
    zipcode: Optional[str] = None
    lat: Optional[str] = None
    lon: Optional[str] = None
    email: Optional[str] = None
    phone_no: Optional[str] = Field(None, alias="phoneNo")
    associated_entities: List[AssociatedEntity] = Field(
        default_factory=list, alias="e_AssociatedEntitys"
    )


__all__ = [
    "AgencyInfo",
    "AncillaryUser",
    "AssociatedEntity",
    "CareManagement",
    "ContactUser",
    "Entity",
    "EpisodeDiagnosis",
    "Patient",
]
