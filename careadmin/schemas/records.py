"""Response schemas for record statistics and grouped reports."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from careadmin.models.records import EpisodeDiagnosis


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PatientStats(CamelModel):
    total_count: int = Field(0, alias="totalCount")
    active_count: int = Field(0, alias="activeCount")
    inactive_count: int = Field(0, alias="inactiveCount")
    by_state: Dict[str, int] = Field(default_factory=dict, alias="byState")


class ContactStats(CamelModel):
    total_count: int = Field(0, alias="totalCount")
    by_lifecycle_stage: Dict[str, int] = Field(default_factory=dict, alias="byLifecycleStage")
    by_persona_type: Dict[str, int] = Field(default_factory=dict, alias="byPersonaType")
    by_owner: Dict[str, int] = Field(default_factory=dict, alias="byOwner")


class AncillaryStats(CamelModel):
    total_count: int = Field(0, alias="totalCount")
    by_entity_type: Dict[str, int] = Field(default_factory=dict, alias="byEntityType")
    by_division: Dict[str, int] = Field(default_factory=dict, alias="byDivision")
    by_lifecycle_stage: Dict[str, int] = Field(default_factory=dict, alias="byLifecycleStage")


class PatientSummary(CamelModel):
    id: str
    patient_wav_id: Optional[str] = Field(None, alias="patientWAVId")
    full_name: str = Field("", alias="fullName")
    status: Optional[str] = None
    date_of_birth: Optional[str] = Field(None, alias="dateOfBirth")


class PatientsByAgencyGroup(CamelModel):
    agency_name: str = Field(..., alias="agencyName")
    patient_count: int = Field(..., alias="patientCount")
    patients: List[PatientSummary] = Field(default_factory=list)


class PatientsByAgencyReport(CamelModel):
    groups: List[PatientsByAgencyGroup] = Field(default_factory=list)
    total_patients: int = Field(0, alias="totalPatients")
    total_agencies: int = Field(0, alias="totalAgencies")


class ContactSummary(CamelModel):
    id: str
    contact_wav_id: str = Field(..., alias="contactWavId")
    full_name: str = Field("", alias="fullName")
    job_title: Optional[str] = Field(None, alias="jobTitle")
    email: str = ""
    lifecycle_stage: Optional[str] = Field(None, alias="lifecycleStage")


class ContactsByEntityGroup(CamelModel):
    entity_name: str = Field(..., alias="entityName")
    entity_type: str = Field(..., alias="entityType")
    contact_count: int = Field(..., alias="contactCount")
    contacts: List[ContactSummary] = Field(default_factory=list)


class ContactsByEntityReport(CamelModel):
    groups: List[ContactsByEntityGroup] = Field(default_factory=list)
    total_contacts: int = Field(0, alias="totalContacts")
    total_entities: int = Field(0, alias="totalEntities")


class AncillarySummary(CamelModel):
    id: str
    entity_wav_id: str = Field(..., alias="entityWavId")
    name: str
    entity_type: str = Field(..., alias="entityType")
    lifecycle_stage: Optional[str] = Field(None, alias="lifecycleStage")
    state: Optional[str] = None
    city: Optional[str] = None


class AncillariesByDivisionGroup(CamelModel):
    division: str
    ancillary_count: int = Field(..., alias="ancillaryCount")
    ancillaries: List[AncillarySummary] = Field(default_factory=list)


class AncillariesByDivisionReport(CamelModel):
    groups: List[AncillariesByDivisionGroup] = Field(default_factory=list)
    total_ancillaries: int = Field(0, alias="totalAncillaries")
    total_divisions: int = Field(0, alias="totalDivisions")


class BulkOperationError(CamelModel):
    index: int
    item_id: Optional[str] = Field(None, alias="itemId")
    error: str = ""


class BulkCreateResponse(CamelModel):
    """Outcome of a bulk create; items are added independently."""

    success: bool
    message: str = ""
    created_count: int = Field(0, alias="createdCount")
    error_count: int = Field(0, alias="errorCount")
    errors: List[BulkOperationError] = Field(default_factory=list)


class PatientDiagnosesResponse(CamelModel):
    patient_id: str = Field(..., alias="patientId")
    patient_name: str = Field("", alias="patientName")
    diagnoses: List[EpisodeDiagnosis] = Field(default_factory=list)


__all__ = [
    "AncillariesByDivisionGroup",
    "AncillariesByDivisionReport",
    "AncillaryStats",
    "AncillarySummary",
    "BulkCreateResponse",
    "BulkOperationError",
    "ContactStats",
    "ContactSummary",
    "ContactsByEntityGroup",
    "ContactsByEntityReport",
    "PatientDiagnosesResponse",
    "PatientStats",
    "PatientSummary",
    "PatientsByAgencyGroup",
    "PatientsByAgencyReport",
]
