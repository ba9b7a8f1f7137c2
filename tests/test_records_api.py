try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from careadmin.main import app
from careadmin.models.records import AncillaryUser, ContactUser, Patient
from careadmin.services import (
    AncillaryUserRepository,
    ContactUserRepository,
    PatientRepository,
)

pytestmark = pytest.mark.anyio("asyncio")


def _patient(pid: str, first: str, last: str, status: str, agency: str | None) -> Patient:
    care = [{"careManagementType": agency}] if agency else []
    return Patient.model_validate(
        {
            "id": pid,
            "agencyInfo": {
                "patientWAVId": f"WAV-{pid}",
                "patientFName": first,
                "patientLName": last,
                "patientStatus": status,
                "dob": "01/02/1950",
                "careManagement": care,
            },
        }
    )


def _contact(cid: str, first: str, stage: str | None, entities: list[dict]) -> ContactUser:
    return ContactUser.model_validate(
        {
            "id": cid,
            "contactWavId": f"C-{cid}",
            "firstName": first,
            "lastName": "Doe",
            "jobTitle": "Case Manager",
            "email": f"{first.lower()}@example.com",
            "contactLifecycleStage": stage,
            "associatedEntities": entities,
        }
    )


def _ancillary(aid: str, name: str, subtype: str | None, state: str) -> AncillaryUser:
    return AncillaryUser.model_validate(
        {
            "id": aid,
            "entityWavId": f"E-{aid}",
            "name": name,
            "entityType": "ANCILLIARY",
            "entitySubtype": subtype,
            "state": state,
        }
    )


ENTITY_A = {"id": "ea", "entityType": "AGENCY", "name": "Sunrise Home Health"}
ENTITY_B = {"id": "eb", "entityType": "AGENCY", "name": "Valley Hospice"}


@pytest.fixture()
def repositories():
    from careadmin import dependencies

    patients = PatientRepository(
        [
            _patient("p1", "Ada", "Lovelace", "Active", "CCM"),
            _patient("p2", "Alan", "Turing", "Inactive", "RPM"),
            _patient("p3", "Grace", "Hopper", "Active", "CCM"),
            _patient("p4", "Edsger", "Dijkstra", "Discharged", None),
        ]
    )
    contacts = ContactUserRepository(
        [
            _contact("c1", "Jane", "User", [ENTITY_A, ENTITY_B]),
            _contact("c2", "John", None, [ENTITY_A]),
            _contact("c3", "Janet", "Lead", []),
        ]
    )
    ancillaries = AncillaryUserRepository(
        [
            _ancillary("a1", "Sunrise Home Health", "Home Health Agency", "TX"),
            _ancillary("a2", "Valley Hospice", "Hospice", "CA"),
            _ancillary("a3", "Northside Home Care", "Home Health Agency", "TX"),
        ]
    )
    app.dependency_overrides.update(
        {
            dependencies.get_patient_repository: lambda: patients,
            dependencies.get_contact_repository: lambda: contacts,
            dependencies.get_ancillary_repository: lambda: ancillaries,
        }
    )
    yield patients, contacts, ancillaries
    app.dependency_overrides.clear()


def _api() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


async def test_health_reports_record_counts(repositories) -> None:
    async with _api() as client:
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "Healthy"
    assert "environment" in data
    assert data["records"] == {"patients": 4, "contacts": 3, "ancillaries": 3}


async def test_list_patients_serializes_camel_case(repositories) -> None:
    async with _api() as client:
        response = await client.get("/api/patients")

    patients = response.json()
    assert len(patients) == 4
    assert patients[0]["agencyInfo"]["patientFName"] == "Ada"
    assert patients[0]["agencyInfo"]["careManagement"] == [{"careManagementType": "CCM"}]


async def test_get_patient_by_id_and_wav_id(repositories) -> None:
    async with _api() as client:
        by_id = await client.get("/api/patients/p2")
        by_wav = await client.get("/api/patients/wavid/WAV-p3")
        missing = await client.get("/api/patients/nope")

    assert by_id.json()["id"] == "p2"
    assert by_wav.json()["id"] == "p3"
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Patient not found"}


async def test_search_patients_names_are_substrings_and_status_is_exact(repositories) -> None:
    async with _api() as client:
        by_name = await client.get("/api/search/patients", params={"firstName": "a"})
        combined = await client.get(
            "/api/search/patients", params={"firstName": "A", "status": "active"}
        )
        blank = await client.get("/api/search/patients", params={"lastName": "  "})
        inactive = await client.get("/api/search/patients", params={"status": "INACTIVE"})
        partial = await client.get("/api/search/patients", params={"status": "activ"})

    assert {p["id"] for p in by_name.json()} == {"p1", "p2", "p3"}
    assert {p["id"] for p in combined.json()} == {"p1", "p3"}
    assert len(blank.json()) == 4
    assert {p["id"] for p in inactive.json()} == {"p2"}
    assert partial.json() == []


async def test_search_contacts_and_ancillaries(repositories) -> None:
    async with _api() as client:
        contacts = await client.get("/api/search/contacts", params={"firstName": "jan"})
        by_type = await client.get(
            "/api/search/ancillaries", params={"entityType": "ANCILLIARY", "state": "tx"}
        )
        wrong_case_type = await client.get(
            "/api/search/ancillaries", params={"entityType": "ancilliary"}
        )

    assert {c["id"] for c in contacts.json()} == {"c1", "c3"}
    assert {a["id"] for a in by_type.json()} == {"a1", "a3"}
    assert wrong_case_type.json() == []


async def test_contact_and_ancillary_lookups(repositories) -> None:
    async with _api() as client:
        contact = await client.get("/api/contacts/wavid/C-c2")
        ancillary = await client.get("/api/ancillaries/a2")
        missing = await client.get("/api/ancillaries/wavid/E-none")

    assert contact.json()["firstName"] == "John"
    assert ancillary.json()["entitySubtype"] == "Hospice"
    assert missing.status_code == 404


async def test_patient_stats(repositories) -> None:
    async with _api() as client:
        response = await client.get("/api/stats/patients")

    assert response.json() == {
        "totalCount": 4,
        "activeCount": 2,
        "inactiveCount": 1,
        "byState": {"CCM": 2, "RPM": 1},
    }


async def test_contact_and_ancillary_stats(repositories) -> None:
    async with _api() as client:
        contacts = (await client.get("/api/stats/contacts")).json()
        ancillaries = (await client.get("/api/stats/ancillaries")).json()

    assert contacts["totalCount"] == 3
    assert contacts["byLifecycleStage"] == {"User": 1, "Unknown": 1, "Lead": 1}
    assert contacts["byOwner"] == {"Unassigned": 3}
    assert ancillaries["byEntityType"] == {"ANCILLIARY": 3}
    assert ancillaries["byDivision"] == {"Home Health Agency": 2, "Hospice": 1}
    assert ancillaries["byLifecycleStage"] == {"Unknown": 3}


async def test_patients_by_agency_orders_largest_group_first(repositories) -> None:
    async with _api() as client:
        report = (await client.get("/api/reports/patients-by-agency")).json()

    assert [g["agencyName"] for g in report["groups"]] == ["CCM", "RPM", "Unknown Agency"]
    assert report["groups"][0]["patientCount"] == 2
    assert report["groups"][0]["patients"][0]["fullName"] == "Ada Lovelace"
    assert report["totalPatients"] == 4
    assert report["totalAgencies"] == 3


async def test_contacts_by_entity_counts_each_link(repositories) -> None:
    async with _api() as client:
        report = (await client.get("/api/reports/contacts-by-entity")).json()

    assert [(g["entityName"], g["contactCount"]) for g in report["groups"]] == [
        ("Sunrise Home Health", 2),
        ("Valley Hospice", 1),
    ]
    assert report["totalContacts"] == 3
    assert report["totalEntities"] == 2


async def test_ancillaries_by_division(repositories) -> None:
    async with _api() as client:
        report = (await client.get("/api/reports/ancillaries-by-division")).json()

    assert report["groups"][0]["division"] == "Home Health Agency"
    assert report["groups"][0]["ancillaryCount"] == 2
    assert {a["entityWavId"] for a in report["groups"][0]["ancillaries"]} == {"E-a1", "E-a3"}
    assert report["totalDivisions"] == 2
