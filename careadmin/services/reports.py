"""Statistics and grouped reports computed over repository snapshots."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from careadmin.models.records import AncillaryUser, ContactUser, Patient
from careadmin.schemas.records import (
    AncillariesByDivisionGroup,
    AncillariesByDivisionReport,
    AncillaryStats,
    AncillarySummary,
    ContactStats,
    ContactSummary,
    ContactsByEntityGroup,
    ContactsByEntityReport,
    PatientStats,
    PatientSummary,
    PatientsByAgencyGroup,
    PatientsByAgencyReport,
)

T = TypeVar("T")
K = TypeVar("K")


def _count_by(items: Iterable[T], key: Callable[[T], str]) -> Dict[str, int]:
    return dict(Counter(key(item) for item in items))


def _group_by(items: Iterable[T], key: Callable[[T], K]) -> List[Tuple[K, List[T]]]:
    """Group preserving first-seen order, then order by group size descending."""
    groups: Dict[K, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return sorted(groups.items(), key=lambda pair: len(pair[1]), reverse=True)


def _status_is(patient: Patient, status: str) -> bool:
    value: Optional[str] = patient.agency_info.status
    return value is not None and value.lower() == status.lower()


def patient_stats(patients: Sequence[Patient]) -> PatientStats:
    # byState is keyed by care management type, which stands in for the region
    with_type = [
        p for p in patients
        if (p.agency_info.primary_care_management_type or "").strip()
    ]
    return PatientStats(
        total_count=len(patients),
        active_count=sum(1 for p in patients if _status_is(p, "Active")),
        inactive_count=sum(1 for p in patients if _status_is(p, "Inactive")),
        by_state=_count_by(with_type, lambda p: p.agency_info.primary_care_management_type),
    )


def contact_stats(contacts: Sequence[ContactUser]) -> ContactStats:
    return ContactStats(
        total_count=len(contacts),
        by_lifecycle_stage=_count_by(contacts, lambda c: c.lifecycle_stage or "Unknown"),
        by_persona_type=_count_by(contacts, lambda c: c.persona_type or "Unknown"),
        by_owner=_count_by(contacts, lambda c: c.contact_owner or "Unassigned"),
    )


def ancillary_stats(ancillaries: Sequence[AncillaryUser]) -> AncillaryStats:
    return AncillaryStats(
        total_count=len(ancillaries),
        by_entity_type=_count_by(ancillaries, lambda a: a.entity_type),
        by_division=_count_by(ancillaries, lambda a: a.entity_subtype or "Unknown"),
        by_lifecycle_stage=_count_by(ancillaries, lambda a: a.lifecycle_stage or "Unknown"),
    )


def patients_by_agency(patients: Sequence[Patient]) -> PatientsByAgencyReport:
    groups = [
        PatientsByAgencyGroup(
            agency_name=agency,
            patient_count=len(members),
            patients=[
                PatientSummary(
                    id=p.id,
                    patient_wav_id=p.agency_info.patient_wav_id,
                    full_name=p.full_name,
                    status=p.agency_info.status,
                    date_of_birth=p.agency_info.dob,
                )
                for p in members
            ],
        )
        for agency, members in _group_by(
            patients,
            lambda p: p.agency_info.primary_care_management_type or "Unknown Agency",
        )
    ]
    return PatientsByAgencyReport(
        groups=groups, total_patients=len(patients), total_agencies=len(groups)
    )


def contacts_by_entity(contacts: Sequence[ContactUser]) -> ContactsByEntityReport:
    """A contact linked to several entities appears once under each of them."""
    pairs = [(contact, entity) for contact in contacts for entity in contact.associated_entities]
    groups = [
        ContactsByEntityGroup(
            entity_name=name,
            entity_type=entity_type,
            contact_count=len(members),
            contacts=[
                ContactSummary(
                    id=contact.id,
                    contact_wav_id=contact.contact_wav_id,
                    full_name=contact.full_name,
                    job_title=contact.job_title,
                    email=contact.email,
                    lifecycle_stage=contact.lifecycle_stage,
                )
                for contact, _ in members
            ],
        )
        for (name, entity_type), members in _group_by(
            pairs,
            lambda pair: (pair[1].name or "No Entity", pair[1].entity_type or "Unknown"),
        )
    ]
    return ContactsByEntityReport(
        groups=groups, total_contacts=len(contacts), total_entities=len(groups)
    )


def ancillaries_by_division(ancillaries: Sequence[AncillaryUser]) -> AncillariesByDivisionReport:
    groups = [
        AncillariesByDivisionGroup(
            division=division,
            ancillary_count=len(members),
            ancillaries=[
                AncillarySummary(
                    id=a.id,
                    entity_wav_id=a.entity_wav_id,
                    name=a.name,
                    entity_type=a.entity_type,
                    lifecycle_stage=a.lifecycle_stage,
                    state=a.state,
                    city=a.city,
                )
                for a in members
            ],
        )
        for division, members in _group_by(
            ancillaries, lambda a: a.entity_subtype or "Unknown Division"
        )
    ]
    return AncillariesByDivisionReport(
        groups=groups, total_ancillaries=len(ancillaries), total_divisions=len(groups)
    )


__all__ = [
    "ancillaries_by_division",
    "ancillary_stats",
    "contact_stats",
    "contacts_by_entity",
    "patient_stats",
    "patients_by_agency",
]
