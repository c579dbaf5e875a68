"""
Listing API endpoints.
Reads are public; every mutation requires a verified session and, for
existing listings, ownership.
"""

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from typing import Dict, List, Optional
from uuid import UUID

from rentalhub.schemas.listing import ImageUpload, ListingFields, ListingUpdate, ListingView
from rentalhub.services.listing import ListingService
from rentalhub.utils.dependencies import get_listing_service, require_identity


router = APIRouter(prefix="/listing", tags=["Listings"])


async def to_image_upload(file: UploadFile) -> ImageUpload:
    """Read an uploaded file into an ImageUpload record."""
    await file.seek(0)
    content = await file.read()
    return ImageUpload(
        filename=file.filename or "",
        content_type=file.content_type,
        content=content
    )


@router.post(
    "",
    response_model=ListingView,
    status_code=status.HTTP_201_CREATED,
    summary="Add listing",
    description="Create a listing owned by the caller. Requires exactly three images."
)
async def add_listing(
    title: str = Form(...),
    rent: str = Form(...),
    city: str = Form(...),
    landmark: str = Form(...),
    category: str = Form(...),
    description: str = Form(""),
    image1: Optional[UploadFile] = File(None),
    image2: Optional[UploadFile] = File(None),
    image3: Optional[UploadFile] = File(None),
    user_id: UUID = Depends(require_identity),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingView:
    """
    Create a new listing for the authenticated host.

    Raises:
        APIException (UNAUTHENTICATED): Missing or invalid session (raised before this body runs)
        APIException (VALIDATION): Invalid fields or not exactly three images
        APIException (NOT_FOUND): The caller's user record no longer exists
    """
    fields = ListingFields(
        title=title,
        description=description,
        rent=rent,
        city=city,
        landmark=landmark,
        category=category
    )

    images = [await to_image_upload(f) for f in (image1, image2, image3) if f is not None]

    result = await listing_service.add_listing(user_id, fields, images)
    return result.unwrap()


@router.get(
    "",
    response_model=List[ListingView],
    status_code=status.HTTP_200_OK,
    summary="List listings",
    description="All listings, most recent first"
)
async def get_listings(
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingView]:
    result = await listing_service.get_listings()
    return result.unwrap()


@router.get(
    "/{listing_id}",
    response_model=ListingView,
    status_code=status.HTTP_200_OK,
    summary="Get listing"
)
async def get_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingView:
    result = await listing_service.get_listing(listing_id)
    return result.unwrap()


@router.put(
    "/{listing_id}",
    response_model=ListingView,
    status_code=status.HTTP_200_OK,
    summary="Update listing",
    description="Partially update a listing. Only the listing's host can update it."
)
async def update_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    rent: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    landmark: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    image1: Optional[UploadFile] = File(None),
    image2: Optional[UploadFile] = File(None),
    image3: Optional[UploadFile] = File(None),
    user_id: UUID = Depends(require_identity),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingView:
    """
    Update mutable listing fields and optionally replace images.

    Raises:
        APIException (NOT_FOUND): Listing doesn't exist
        APIException (FORBIDDEN): Caller is not the listing's host
        APIException (VALIDATION): Invalid field values or images
    """
    changes = ListingUpdate(
        title=title,
        description=description,
        rent=rent,
        city=city,
        landmark=landmark,
        category=category
    )

    images: Dict[str, ImageUpload] = {}
    for slot, upload in (("image1", image1), ("image2", image2), ("image3", image3)):
        if upload is not None:
            images[slot] = await to_image_upload(upload)

    result = await listing_service.update_listing(user_id, listing_id, changes, images)
    return result.unwrap()


@router.delete(
    "/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete listing",
    description="Delete a listing. Only the listing's host can delete it."
)
async def delete_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    user_id: UUID = Depends(require_identity),
    listing_service: ListingService = Depends(get_listing_service)
) -> None:
    result = await listing_service.delete_listing(user_id, listing_id)
    result.unwrap()
