"""Payroll run service tests against a real session."""

from decimal import Decimal
from uuid import uuid4
from xml.etree import ElementTree

import pytest

from cohesio_payroll.calculators.types import EmployeeProfile, PayrollRunStatus
from cohesio_payroll.exceptions import (
    DuplicatePeriodError,
    InvalidNetPayError,
    PayrollRunNotFoundError,
    StateError,
)
from cohesio_payroll.services.pay_run_service import PayrollRunService

pytestmark = pytest.mark.asyncio

COMPANY = "acme"


@pytest.fixture
def service(db_session, rates) -> PayrollRunService:
    return PayrollRunService(db_session, rates)


class TestDrafts:
    """Draft creation and edits."""

    async def test_create_and_reload(self, service):
        run = await service.create_draft(
            COMPANY, "2024-03", employee_data={"emp-001": {"base_salary": "6 000,00"}}
        )
        loaded = await service.get_run(COMPANY, run.id)

        assert loaded.status == PayrollRunStatus.DRAFT
        assert loaded.period_label == "March 2024"
        assert loaded.employee_data["emp-001"].base_salary == Decimal("6000.00")

    async def test_one_run_per_period(self, service):
        await service.create_draft(COMPANY, "2024-03")
        with pytest.raises(DuplicatePeriodError):
            await service.create_draft(COMPANY, "2024-03")

    async def test_period_scoped_by_company(self, service):
        await service.create_draft(COMPANY, "2024-03")
        other = await service.create_draft("globex", "2024-03")
        assert other.company_id == "globex"

    async def test_defaults_from_profiles(self, service):
        run = await service.create_draft(
            COMPANY,
            "2024-04",
            profiles=[EmployeeProfile(employee_id="emp-001", name="A B", compensation="72,000/year")],
        )
        assert run.employee_data["emp-001"].base_salary == Decimal("6000.00")

    async def test_save_draft(self, service):
        run = await service.create_draft(COMPANY, "2024-03")
        await service.save_draft(COMPANY, run.id, {"emp-001": {"base_salary": 4000, "bonuses": 500}})

        loaded = await service.get_run(COMPANY, run.id)
        assert loaded.employee_data["emp-001"].bonuses == Decimal("500.00")

    async def test_unknown_run(self, service):
        with pytest.raises(PayrollRunNotFoundError):
            await service.get_run(COMPANY, uuid4())

    async def test_other_company_cannot_see_run(self, service):
        run = await service.create_draft(COMPANY, "2024-03")
        with pytest.raises(PayrollRunNotFoundError):
            await service.get_run("globex", run.id)


class TestFinalize:
    """Finalization over stored runs."""

    async def test_finalize_persists_totals(self, service):
        run = await service.create_draft(
            COMPANY, "2024-03", employee_data={"emp-001": {"base_salary": 6000}}
        )
        await service.finalize(COMPANY, run.id)

        loaded = await service.get_run(COMPANY, run.id)
        assert loaded.status == PayrollRunStatus.FINALIZED
        assert loaded.total_gross_pay == Decimal("6000.00")
        assert loaded.total_net_pay == Decimal("5083.59")
        assert loaded.finalized_at is not None
        assert loaded.inputs_fingerprint is not None

    async def test_finalize_with_new_inputs(self, service):
        run = await service.create_draft(COMPANY, "2024-03")
        finalized = await service.finalize(
            COMPANY, run.id, employee_data={"emp-001": {"base_salary": 6000}}
        )
        assert list(finalized.employee_data) == ["emp-001"]

    async def test_negative_net_leaves_draft_untouched(self, service):
        run = await service.create_draft(
            COMPANY, "2024-03", employee_data={"emp-001": {"base_salary": 6000}}
        )
        with pytest.raises(InvalidNetPayError) as exc_info:
            await service.finalize(
                COMPANY,
                run.id,
                employee_data={"emp-001": {"base_salary": 1000, "other_deductions": 2000}},
            )
        assert exc_info.value.employee_ids == ["emp-001"]

        loaded = await service.get_run(COMPANY, run.id)
        assert loaded.status == PayrollRunStatus.DRAFT
        assert loaded.employee_data["emp-001"].base_salary == Decimal("6000.00")
        assert loaded.total_net_pay is None

    async def test_finalized_run_is_frozen(self, service):
        run = await service.create_draft(
            COMPANY, "2024-03", employee_data={"emp-001": {"base_salary": 6000}}
        )
        await service.finalize(COMPANY, run.id)

        with pytest.raises(StateError):
            await service.finalize(COMPANY, run.id)
        with pytest.raises(StateError):
            await service.save_draft(COMPANY, run.id, {"emp-001": {"base_salary": 1}})

        loaded = await service.get_run(COMPANY, run.id)
        assert loaded.total_net_pay == Decimal("5083.59")


class TestListAndExport:
    """Listing and statutory export."""

    async def test_list_runs(self, service):
        march = await service.create_draft(COMPANY, "2024-03")
        await service.create_draft(COMPANY, "2024-01")
        await service.create_draft("globex", "2024-02")
        await service.finalize(COMPANY, march.id, employee_data={})

        runs = await service.list_runs(COMPANY)
        assert [r.period for r in runs] == ["2024-03", "2024-01"]

        finalized = await service.list_runs(COMPANY, status="finalized")
        assert [r.period for r in finalized] == ["2024-03"]

    async def test_export(self, service, employee_profiles, company):
        run = await service.create_draft(
            COMPANY,
            "2024-03",
            employee_data={"emp-001": {"base_salary": 6000}, "emp-002": {"base_salary": 3000}},
        )
        with pytest.raises(StateError):
            await service.export_xml(COMPANY, run.id, employee_profiles, company)

        await service.finalize(COMPANY, run.id)
        xml = await service.export_xml(COMPANY, run.id, employee_profiles, company)
        assert "<totalSalaries>2</totalSalaries>" in xml
        assert "<exercice>2024</exercice>" in xml

    async def test_export_after_rate_change(
        self, db_session, service, employee_profiles, company, rates, revised_rates
    ):
        """The pinned table survives a reload and drives the export."""
        run = await service.create_draft(
            COMPANY,
            "2024-03",
            employee_data={"emp-001": {"base_salary": 6000}, "emp-002": {"base_salary": 3000}},
        )
        finalized = await service.finalize(COMPANY, run.id)
        db_session.expunge_all()

        later = PayrollRunService(db_session, revised_rates)
        reloaded = await later.get_run(COMPANY, run.id)
        assert reloaded.rate_snapshot == rates.to_dict()

        xml = await later.export_xml(COMPANY, run.id, employee_profiles, company)
        root = ElementTree.fromstring(xml.encode("utf-8"))
        nets = [Decimal(s.findtext("remunerationNette")) for s in root.iter("salarie")]
        assert sum(nets) == finalized.total_net_pay
        assert root.find("entete").findtext("totalNet") == f"{finalized.total_net_pay:.2f}"
