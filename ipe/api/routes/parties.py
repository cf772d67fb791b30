"""Party API routes."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ipe.api.deps import get_caller, get_party_service, read_uploads
from ipe.schemas.parties import PartyResponse
from ipe.services.auth_service import CallerContext
from ipe.services.party_service import PartyService

router = APIRouter(prefix="/api/parties", tags=["parties"])


@router.get("", response_model=list[PartyResponse])
async def list_parties(
    caller: CallerContext = Depends(get_caller),
    parties: PartyService = Depends(get_party_service),
) -> list[PartyResponse]:
    return [PartyResponse.model_validate(p) for p in parties.list_all()]


@router.post("", response_model=PartyResponse, status_code=status.HTTP_201_CREATED)
async def create_party(
    kind: str = Form(...),
    name: str = Form(...),
    email: str = Form(...),
    cpf: str = Form(...),
    phone: str | None = Form(None),
    rg: str | None = Form(None),
    issuing_agency: str | None = Form(None),
    attachments: list[UploadFile] | None = File(None),
    caller: CallerContext = Depends(get_caller),
    parties: PartyService = Depends(get_party_service),
) -> PartyResponse:
    """
    Register a party (owner only). Also creates its login with the initial password.

    Returns:
        201: PartyResponse
        400: Invalid fields, duplicate email or rejected attachment
        403: Caller is not the owner
    """
    party = parties.create(
        caller,
        kind=kind,
        name=name,
        email=email,
        cpf=cpf,
        phone=phone,
        rg=rg,
        issuing_agency=issuing_agency,
        attachments=await read_uploads(attachments),
    )
    return PartyResponse.model_validate(party)


@router.patch("/{party_id}", response_model=PartyResponse)
async def update_party(
    party_id: int,
    kind: str | None = Form(None),
    name: str | None = Form(None),
    email: str | None = Form(None),
    cpf: str | None = Form(None),
    phone: str | None = Form(None),
    rg: str | None = Form(None),
    issuing_agency: str | None = Form(None),
    attachments: list[UploadFile] | None = File(None),
    caller: CallerContext = Depends(get_caller),
    parties: PartyService = Depends(get_party_service),
) -> PartyResponse:
    changes = {
        "kind": kind,
        "name": name,
        "email": email,
        "cpf": cpf,
        "phone": phone,
        "rg": rg,
        "issuing_agency": issuing_agency,
    }
    party = parties.update(caller, party_id, changes, await read_uploads(attachments))
    return PartyResponse.model_validate(party)


@router.delete("/{party_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_party(
    party_id: int,
    caller: CallerContext = Depends(get_caller),
    parties: PartyService = Depends(get_party_service),
) -> None:
    parties.delete(caller, party_id)
