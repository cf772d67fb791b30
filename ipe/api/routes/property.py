"""Property API routes."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ipe.api.deps import get_caller, get_property_service, read_upload, read_uploads
from ipe.schemas.property import PropertyResponse
from ipe.services.auth_service import CallerContext
from ipe.services.property_service import PropertyService

router = APIRouter(prefix="/api/property", tags=["property"])


@router.get("", response_model=PropertyResponse)
async def get_property(
    caller: CallerContext = Depends(get_caller),
    properties: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    return PropertyResponse.model_validate(properties.get())


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    name: str = Form(...),
    address: str = Form(...),
    sale_value: str = Form(...),
    rent_value: str = Form(...),
    contract: UploadFile | None = File(None),
    cover_photo: UploadFile | None = File(None),
    attachments: list[UploadFile] | None = File(None),
    caller: CallerContext = Depends(get_caller),
    properties: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    """
    Register the property (owner only, once).

    Returns:
        201: PropertyResponse
        400: Already registered, non-positive values or rejected file
        403: Caller is not the owner
    """
    prop = properties.create(
        caller,
        name=name,
        address=address,
        sale_value=sale_value,
        rent_value=rent_value,
        contract=await read_upload(contract),
        cover_photo=await read_upload(cover_photo),
        attachments=await read_uploads(attachments),
    )
    return PropertyResponse.model_validate(prop)


@router.patch("", response_model=PropertyResponse)
async def update_property(
    name: str | None = Form(None),
    address: str | None = Form(None),
    sale_value: str | None = Form(None),
    rent_value: str | None = Form(None),
    contract: UploadFile | None = File(None),
    cover_photo: UploadFile | None = File(None),
    attachments: list[UploadFile] | None = File(None),
    caller: CallerContext = Depends(get_caller),
    properties: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    prop = properties.update(
        caller,
        {"name": name, "address": address, "sale_value": sale_value, "rent_value": rent_value},
        contract=await read_upload(contract),
        cover_photo=await read_upload(cover_photo),
        attachments=await read_uploads(attachments),
    )
    return PropertyResponse.model_validate(prop)
