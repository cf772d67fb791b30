"""Payable record API routes: installments, rents and condominium fees.

The three record kinds share list, delete, status transition and evidence
routes; build_payable_router() creates them for one kind.
"""

from datetime import date

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ipe.api.deps import get_caller, get_payable_service, read_upload
from ipe.models.payable import CondoFeeEntry, Installment, RentEntry
from ipe.schemas.payables import (
    AuditEntryResponse,
    InstallmentResponse,
    MonthlyEntryResponse,
    PayableResponse,
)
from ipe.services.auth_service import CallerContext
from ipe.services.errors import DataValidationError
from ipe.services.payable_service import PayableService
from ipe.services.payment_status import allowed_targets


def build_payable_router(
    prefix: str, kind: str, response_model: type[PayableResponse], tag: str
) -> APIRouter:
    """Create the routes shared by every payable record kind."""
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=list[response_model])
    async def list_records(
        property_id: int | None = None,
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ):
        return [
            response_model.model_validate(r) for r in payables.list_by_property(kind, property_id)
        ]

    @router.get("/{record_id}", response_model=response_model)
    async def get_record(
        record_id: int,
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ):
        return response_model.model_validate(payables.get(kind, record_id))

    @router.get("/{record_id}/transitions", response_model=list[str])
    async def list_allowed_transitions(
        record_id: int,
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ) -> list[str]:
        """Statuses the caller may request from the record's current one."""
        record = payables.get(kind, record_id)
        return [s.value for s in allowed_targets(record.status, caller.role)]

    @router.get("/{record_id}/history", response_model=list[AuditEntryResponse])
    async def record_history(
        record_id: int,
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ):
        """Audit trail of the record (owner only)."""
        return [
            AuditEntryResponse.model_validate(e) for e in payables.history(kind, record_id, caller)
        ]

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(
        record_id: int,
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ) -> None:
        payables.delete(kind, record_id, caller)

    @router.post("/{record_id}/transition", response_model=response_model)
    async def transition_record(
        record_id: int,
        status_value: str = Form(..., alias="status"),
        expected_version: int | None = Form(None),
        evidence: UploadFile | None = File(None),
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ):
        """
        Move the record to another payment status.

        Returns:
            200: The updated record
            400: Unknown status, illegal transition, missing or rejected evidence
            403: Role not allowed (only the owner confirms payments)
            409: expected_version is stale
        """
        record = payables.apply_transition(
            kind,
            record_id,
            status_value,
            caller,
            evidence=await read_upload(evidence),
            expected_version=expected_version,
        )
        return response_model.model_validate(record)

    @router.post("/{record_id}/evidence", response_model=response_model)
    async def attach_evidence(
        record_id: int,
        evidence: UploadFile = File(...),
        expected_version: int | None = Form(None),
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ):
        upload = await read_upload(evidence)
        if upload is None:
            raise DataValidationError("Evidence file is required")
        record = payables.attach_evidence(
            kind, record_id, caller, upload, expected_version=expected_version
        )
        return response_model.model_validate(record)

    @router.delete("/{record_id}/evidence", response_model=response_model)
    async def remove_evidence(
        record_id: int,
        expected_version: int | None = None,
        caller: CallerContext = Depends(get_caller),
        payables: PayableService = Depends(get_payable_service),
    ):
        record = payables.remove_evidence(kind, record_id, caller, expected_version=expected_version)
        return response_model.model_validate(record)

    return router


installments_router = build_payable_router(
    "/api/installments", Installment.entity_name, InstallmentResponse, "installments"
)
rents_router = build_payable_router("/api/rents", RentEntry.entity_name, MonthlyEntryResponse, "rents")
condo_fees_router = build_payable_router(
    "/api/condo-fees", CondoFeeEntry.entity_name, MonthlyEntryResponse, "condo-fees"
)


@installments_router.post("", response_model=InstallmentResponse, status_code=status.HTTP_201_CREATED)
async def create_installment(
    amount: str = Form(...),
    due_date: date | None = Form(None),
    evidence: UploadFile | None = File(None),
    caller: CallerContext = Depends(get_caller),
    payables: PayableService = Depends(get_payable_service),
) -> InstallmentResponse:
    installment = payables.create_installment(
        caller, amount, due_date=due_date, evidence=await read_upload(evidence)
    )
    return InstallmentResponse.model_validate(installment)


@rents_router.post("", response_model=MonthlyEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_rent_entry(
    amount: str | None = Form(None),
    caller: CallerContext = Depends(get_caller),
    payables: PayableService = Depends(get_payable_service),
) -> MonthlyEntryResponse:
    """Append next month's rent; amount defaults to the property rent."""
    return MonthlyEntryResponse.model_validate(payables.create_rent_entry(caller, amount or None))


@condo_fees_router.post("", response_model=MonthlyEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_condo_fee_entry(
    amount: str = Form(...),
    caller: CallerContext = Depends(get_caller),
    payables: PayableService = Depends(get_payable_service),
) -> MonthlyEntryResponse:
    return MonthlyEntryResponse.model_validate(payables.create_condo_fee_entry(caller, amount))
