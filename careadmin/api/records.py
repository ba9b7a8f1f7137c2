"""
Routes over patient, contact and ancillary records.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from careadmin.dependencies import (
    get_ancillary_repository,
    get_contact_repository,
    get_patient_repository,
)
from careadmin.models.records import (
    AncillaryUser,
    AssociatedEntity,
    ContactUser,
    EpisodeDiagnosis,
    Patient,
)
from careadmin.schemas import (
    AncillariesByDivisionReport,
    AncillaryStats,
    BulkCreateResponse,
    ContactStats,
    ContactsByEntityReport,
    PatientDiagnosesResponse,
    PatientStats,
    PatientsByAgencyReport,
)
from careadmin.services import (
    AncillaryUserRepository,
    ContactUserRepository,
    InMemoryRepository,
    PatientRepository,
    RecordExistsError,
)
from careadmin.services import reports

router = APIRouter()
logger = logging.getLogger(__name__)

Patients = Annotated[PatientRepository, Depends(get_patient_repository)]
Contacts = Annotated[ContactUserRepository, Depends(get_contact_repository)]
Ancillaries = Annotated[AncillaryUserRepository, Depends(get_ancillary_repository)]
Changes = Annotated[Dict[str, Any], Body(description="Fields to change, nested objects merge.")]


class BulkPatientsRequest(BaseModel):
    patients: List[Dict[str, Any]] = []


class BulkContactsRequest(BaseModel):
    contacts: List[Dict[str, Any]] = []


class BulkAncillariesRequest(BaseModel):
    ancillaries: List[Dict[str, Any]] = []


def _found(record, label: str):
    if record is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=f"{label} not found")
    return record


def _add(repository: InMemoryRepository, record):
    try:
        return repository.add(record)
    except RecordExistsError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc


def _patch(repository: InMemoryRepository, record_id: str, changes: Dict[str, Any], label: str):
    try:
        return _found(repository.patch(record_id, changes), label)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


def _delete(repository: InMemoryRepository, record_id: str, label: str) -> Response:
    if not repository.delete(record_id):
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=f"{label} not found")
    return Response(status_code=HTTPStatus.NO_CONTENT)


def _bulk(
    repository: InMemoryRepository, items: List[Dict[str, Any]], noun: str, response: Response
) -> BulkCreateResponse:
    if not items:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Request must contain at least one {noun}.",
        )
    result = repository.bulk_add(items)
    logger.info(
        "Bulk %s creation: %s created, %s failed", noun, result.created_count, result.error_count
    )
    response.status_code = HTTPStatus.CREATED if result.created_count else HTTPStatus.BAD_REQUEST
    return result


def _link_entity(repository, record_id: str, entity: AssociatedEntity, label: str):
    try:
        record = repository.add_entity(record_id, entity)
    except RecordExistsError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc
    return _found(record, label).associated_entities


def _diagnoses(patient: Patient) -> PatientDiagnosesResponse:
    return PatientDiagnosesResponse(
        patient_id=patient.id,
        patient_name=patient.full_name,
        diagnoses=patient.agency_info.episode_diagnoses or [],
    )


# Patients


@router.get("/patients", response_model=List[Patient], tags=["Patients"])
async def list_patients(repository: Patients) -> List[Patient]:
    patients = repository.get_all()
    logger.info("Successfully retrieved %s patients", len(patients))
    return patients


@router.get("/patients/wavid/{wav_id}", response_model=Patient, tags=["Patients"])
async def get_patient_by_wav_id(wav_id: str, repository: Patients) -> Patient:
    return _found(repository.get_by_wav_id(wav_id), "Patient")


@router.get("/patients/{patient_id}", response_model=Patient, tags=["Patients"])
async def get_patient(patient_id: str, repository: Patients) -> Patient:
    return _found(repository.get_by_id(patient_id), "Patient")


@router.post(
    "/patients", response_model=Patient, status_code=HTTPStatus.CREATED, tags=["Patients"]
)
async def create_patient(patient: Patient, repository: Patients) -> Patient:
    """Create a patient; an id is generated when none is supplied."""
    return _add(repository, patient)


@router.put("/patients/{patient_id}", response_model=Patient, tags=["Patients"])
async def replace_patient(patient_id: str, patient: Patient, repository: Patients) -> Patient:
    return _found(repository.replace(patient_id, patient), "Patient")


@router.patch("/patients/{patient_id}", response_model=Patient, tags=["Patients"])
async def patch_patient(patient_id: str, changes: Changes, repository: Patients) -> Patient:
    return _patch(repository, patient_id, changes, "Patient")


@router.delete(
    "/patients/{patient_id}", status_code=HTTPStatus.NO_CONTENT, tags=["Patients"]
)
async def delete_patient(patient_id: str, repository: Patients) -> Response:
    return _delete(repository, patient_id, "Patient")


@router.get(
    "/patients/{patient_id}/diagnoses",
    response_model=PatientDiagnosesResponse,
    tags=["Patients"],
)
async def get_patient_diagnoses(patient_id: str, repository: Patients) -> PatientDiagnosesResponse:
    return _diagnoses(_found(repository.get_by_id(patient_id), "Patient"))


@router.post(
    "/patients/{patient_id}/diagnoses",
    response_model=PatientDiagnosesResponse,
    status_code=HTTPStatus.CREATED,
    tags=["Patients"],
)
async def add_patient_diagnosis(
    patient_id: str, diagnosis: EpisodeDiagnosis, repository: Patients
) -> PatientDiagnosesResponse:
    try:
        patient = repository.add_diagnosis(patient_id, diagnosis)
    except RecordExistsError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc
    return _diagnoses(_found(patient, "Patient"))


@router.get("/search/patients", response_model=List[Patient], tags=["Patients"])
async def search_patients(
    repository: Patients,
    first_name: Optional[str] = Query(None, alias="firstName"),
    last_name: Optional[str] = Query(None, alias="lastName"),
    status: Optional[str] = Query(None, description="Exact, case-insensitive."),
) -> List[Patient]:
    """Search patients by first name, last name or status."""
    logger.info(
        "Searching patients with criteria - FirstName: %s, LastName: %s, Status: %s",
        first_name or "N/A",
        last_name or "N/A",
        status or "N/A",
    )
    results = repository.search(first_name, last_name, status)
    logger.info("Search returned %s patients", len(results))
    return results


# Contacts


@router.get("/contacts", response_model=List[ContactUser], tags=["Contacts"])
async def list_contacts(repository: Contacts) -> List[ContactUser]:
    return repository.get_all()


@router.get("/contacts/wavid/{wav_id}", response_model=ContactUser, tags=["Contacts"])
async def get_contact_by_wav_id(wav_id: str, repository: Contacts) -> ContactUser:
    return _found(repository.get_by_wav_id(wav_id), "Contact")


@router.get("/contacts/{contact_id}", response_model=ContactUser, tags=["Contacts"])
async def get_contact(contact_id: str, repository: Contacts) -> ContactUser:
    return _found(repository.get_by_id(contact_id), "Contact")


@router.post(
    "/contacts", response_model=ContactUser, status_code=HTTPStatus.CREATED, tags=["Contacts"]
)
async def create_contact(contact: ContactUser, repository: Contacts) -> ContactUser:
    return _add(repository, contact)


@router.put("/contacts/{contact_id}", response_model=ContactUser, tags=["Contacts"])
async def replace_contact(
    contact_id: str, contact: ContactUser, repository: Contacts
) -> ContactUser:
    return _found(repository.replace(contact_id, contact), "Contact")


@router.patch("/contacts/{contact_id}", response_model=ContactUser, tags=["Contacts"])
async def patch_contact(contact_id: str, changes: Changes, repository: Contacts) -> ContactUser:
    return _patch(repository, contact_id, changes, "Contact")


@router.delete(
    "/contacts/{contact_id}", status_code=HTTPStatus.NO_CONTENT, tags=["Contacts"]
)
async def delete_contact(contact_id: str, repository: Contacts) -> Response:
    return _delete(repository, contact_id, "Contact")


@router.get(
    "/contacts/{contact_id}/entities",
    response_model=List[AssociatedEntity],
    tags=["Contacts"],
)
async def get_contact_entities(contact_id: str, repository: Contacts) -> List[AssociatedEntity]:
    return _found(repository.get_by_id(contact_id), "Contact").associated_entities


@router.post(
    "/contacts/{contact_id}/entities",
    response_model=List[AssociatedEntity],
    status_code=HTTPStatus.CREATED,
    tags=["Contacts"],
)
async def add_contact_entity(
    contact_id: str, entity: AssociatedEntity, repository: Contacts
) -> List[AssociatedEntity]:
    return _link_entity(repository, contact_id, entity, "Contact")


@router.get("/search/contacts", response_model=List[ContactUser], tags=["Contacts"])
async def search_contacts(
    repository: Contacts,
    first_name: Optional[str] = Query(None, alias="firstName"),
    last_name: Optional[str] = Query(None, alias="lastName"),
    job_title: Optional[str] = Query(None, alias="jobTitle"),
) -> List[ContactUser]:
    return repository.search(first_name, last_name, job_title)


# Ancillaries


@router.get("/ancillaries", response_model=List[AncillaryUser], tags=["Ancillaries"])
async def list_ancillaries(repository: Ancillaries) -> List[AncillaryUser]:
    return repository.get_all()


@router.get("/ancillaries/wavid/{wav_id}", response_model=AncillaryUser, tags=["Ancillaries"])
async def get_ancillary_by_wav_id(wav_id: str, repository: Ancillaries) -> AncillaryUser:
    return _found(repository.get_by_wav_id(wav_id), "Ancillary")


@router.get("/ancillaries/{ancillary_id}", response_model=AncillaryUser, tags=["Ancillaries"])
async def get_ancillary(ancillary_id: str, repository: Ancillaries) -> AncillaryUser:
    return _found(repository.get_by_id(ancillary_id), "Ancillary")


@router.post(
    "/ancillaries",
    response_model=AncillaryUser,
    status_code=HTTPStatus.CREATED,
    tags=["Ancillaries"],
)
async def create_ancillary(ancillary: AncillaryUser, repository: Ancillaries) -> AncillaryUser:
    return _add(repository, ancillary)


@router.put("/ancillaries/{ancillary_id}", response_model=AncillaryUser, tags=["Ancillaries"])
async def replace_ancillary(
    ancillary_id: str, ancillary: AncillaryUser, repository: Ancillaries
) -> AncillaryUser:
    return _found(repository.replace(ancillary_id, ancillary), "Ancillary")


@router.patch("/ancillaries/{ancillary_id}", response_model=AncillaryUser, tags=["Ancillaries"])
async def patch_ancillary(
    ancillary_id: str, changes: Changes, repository: Ancillaries
) -> AncillaryUser:
    return _patch(repository, ancillary_id, changes, "Ancillary")


@router.delete(
    "/ancillaries/{ancillary_id}", status_code=HTTPStatus.NO_CONTENT, tags=["Ancillaries"]
)
async def delete_ancillary(ancillary_id: str, repository: Ancillaries) -> Response:
    return _delete(repository, ancillary_id, "Ancillary")


@router.get(
    "/ancillaries/{ancillary_id}/entities",
    response_model=List[AssociatedEntity],
    tags=["Ancillaries"],
)
async def get_ancillary_entities(
    ancillary_id: str, repository: Ancillaries
) -> List[AssociatedEntity]:
    return _found(repository.get_by_id(ancillary_id), "Ancillary").associated_entities


@router.post(
    "/ancillaries/{ancillary_id}/entities",
    response_model=List[AssociatedEntity],
    status_code=HTTPStatus.CREATED,
    tags=["Ancillaries"],
)
async def add_ancillary_entity(
    ancillary_id: str, entity: AssociatedEntity, repository: Ancillaries
) -> List[AssociatedEntity]:
    return _link_entity(repository, ancillary_id, entity, "Ancillary")


@router.get("/search/ancillaries", response_model=List[AncillaryUser], tags=["Ancillaries"])
async def search_ancillaries(
    repository: Ancillaries,
    name: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None, alias="entityType"),
    state: Optional[str] = Query(None),
) -> List[AncillaryUser]:
    return repository.search(name, entity_type, state)


# Bulk


@router.post(
    "/bulk/patients",
    response_model=BulkCreateResponse,
    status_code=HTTPStatus.CREATED,
    tags=["Bulk Operations"],
)
async def bulk_create_patients(
    payload: BulkPatientsRequest, repository: Patients, response: Response
) -> BulkCreateResponse:
    return _bulk(repository, payload.patients, "patient", response)


@router.post(
    "/bulk/contacts",
    response_model=BulkCreateResponse,
    status_code=HTTPStatus.CREATED,
    tags=["Bulk Operations"],
)
async def bulk_create_contacts(
    payload: BulkContactsRequest, repository: Contacts, response: Response
) -> BulkCreateResponse:
    return _bulk(repository, payload.contacts, "contact", response)


@router.post(
    "/bulk/ancillaries",
    response_model=BulkCreateResponse,
    status_code=HTTPStatus.CREATED,
    tags=["Bulk Operations"],
)
async def bulk_create_ancillaries(
    payload: BulkAncillariesRequest, repository: Ancillaries, response: Response
) -> BulkCreateResponse:
    return _bulk(repository, payload.ancillaries, "ancillary", response)


# Stats and reports


@router.get("/stats/patients", response_model=PatientStats, tags=["Stats"])
async def get_patient_stats(repository: Patients) -> PatientStats:
    stats = reports.patient_stats(repository.get_all())
    logger.info(
        "Successfully retrieved patient statistics: Total=%s, Active=%s, Inactive=%s",
        stats.total_count,
        stats.active_count,
        stats.inactive_count,
    )
    return stats


@router.get("/stats/contacts", response_model=ContactStats, tags=["Stats"])
async def get_contact_stats(repository: Contacts) -> ContactStats:
    return reports.contact_stats(repository.get_all())


@router.get("/stats/ancillaries", response_model=AncillaryStats, tags=["Stats"])
async def get_ancillary_stats(repository: Ancillaries) -> AncillaryStats:
    return reports.ancillary_stats(repository.get_all())


@router.get(
    "/reports/patients-by-agency", response_model=PatientsByAgencyReport, tags=["Reports"]
)
async def get_patients_by_agency(repository: Patients) -> PatientsByAgencyReport:
    """Patients grouped by agency, largest group first."""
    report = reports.patients_by_agency(repository.get_all())
    logger.info(
        "Successfully retrieved patients by agency: %s agencies, %s patients",
        report.total_agencies,
        report.total_patients,
    )
    return report


@router.get(
    "/reports/contacts-by-entity", response_model=ContactsByEntityReport, tags=["Reports"]
)
async def get_contacts_by_entity(repository: Contacts) -> ContactsByEntityReport:
    return reports.contacts_by_entity(repository.get_all())


@router.get(
    "/reports/ancillaries-by-division",
    response_model=AncillariesByDivisionReport,
    tags=["Reports"],
)
async def get_ancillaries_by_division(repository: Ancillaries) -> AncillariesByDivisionReport:
    return reports.ancillaries_by_division(repository.get_all())


__all__ = ["router"]
