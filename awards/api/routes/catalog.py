"""Category, participant, duo and nomination endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session, get_image_service
from awards.api.routes.auth import AuthenticatedUser, require_admin, require_voter
from awards.schemas.catalog import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    DuoCreate,
    DuoRead,
    ImageUploadResponse,
    NominateDuosRequest,
    NominateParticipantsRequest,
    NominationRead,
    ParticipantCreate,
    ParticipantRead,
    ParticipantUpdate,
)
from awards.services.catalog import (
    CategoryKindError,
    CategoryNotFoundError,
    DuoNotFoundError,
    DuplicateDuoError,
    DuplicateNominationError,
    NominationNotFoundError,
    ParticipantNotFoundError,
    SameParticipantError,
    create_category,
    create_duo,
    create_participant,
    delete_category,
    delete_duo,
    delete_nomination,
    delete_participant,
    get_participant,
    list_categories,
    list_duos,
    list_nominations,
    list_participants,
    nominate_all_participants,
    nominate_duos,
    nominate_participants,
    update_category,
    update_participant,
)
from awards.services.editions import EditionNotFoundError, get_edition
from awards.services.images import (
    ImageStorageError,
    ImageTooLargeError,
    ParticipantImageService,
    UnsupportedImageTypeError,
)

router = APIRouter()

_NOT_FOUND = (
    CategoryNotFoundError,
    DuoNotFoundError,
    EditionNotFoundError,
    NominationNotFoundError,
    ParticipantNotFoundError,
)


def _nominations(items) -> list[NominationRead]:
    return [NominationRead.model_validate(item) for item in items]


@router.get("/editions/{edition_id}/categories", response_model=list[CategoryRead])
def list_edition_categories(
    edition_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[CategoryRead]:
    try:
        get_edition(session, edition_id=edition_id)
    except EditionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return [CategoryRead.model_validate(item) for item in list_categories(session, edition_id=edition_id)]


@router.post(
    "/editions/{edition_id}/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_edition_category(
    edition_id: str,
    payload: CategoryCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> CategoryRead:
    try:
        get_edition(session, edition_id=edition_id)
    except EditionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    category = create_category(session, edition_id=edition_id, **payload.model_dump())
    return CategoryRead.model_validate(category)


@router.put("/categories/{category_id}", response_model=CategoryRead)
def update_one_category(
    category_id: str,
    payload: CategoryUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> CategoryRead:
    try:
        category = update_category(
            session, category_id=category_id, changes=payload.model_dump(exclude_unset=True)
        )
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CategoryRead.model_validate(category)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_one_category(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        delete_category(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/participants", response_model=list[ParticipantRead])
def list_all_participants(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> list[ParticipantRead]:
    return [ParticipantRead.model_validate(item) for item in list_participants(session)]


@router.post("/participants", response_model=ParticipantRead, status_code=status.HTTP_201_CREATED)
def create_one_participant(
    payload: ParticipantCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> ParticipantRead:
    participant = create_participant(session, **payload.model_dump())
    return ParticipantRead.model_validate(participant)


@router.get("/participants/{participant_id}", response_model=ParticipantRead)
def read_participant(
    participant_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> ParticipantRead:
    try:
        participant = get_participant(session, participant_id=participant_id)
    except ParticipantNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ParticipantRead.model_validate(participant)


@router.put("/participants/{participant_id}", response_model=ParticipantRead)
def update_one_participant(
    participant_id: str,
    payload: ParticipantUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> ParticipantRead:
    try:
        participant = update_participant(
            session, participant_id=participant_id, changes=payload.model_dump(exclude_unset=True)
        )
    except ParticipantNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ParticipantRead.model_validate(participant)


@router.delete("/participants/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_one_participant(
    participant_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        delete_participant(session, participant_id=participant_id)
    except ParticipantNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/participants/{participant_id}/image", response_model=ImageUploadResponse)
async def upload_participant_image(
    participant_id: str,
    request: Request,
    session: Session = Depends(get_db_session),
    images: ParticipantImageService = Depends(get_image_service),
    user: AuthenticatedUser = Depends(require_admin),
) -> ImageUploadResponse:
    """Store the raw request body as the participant's picture."""

    body = await request.body()
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    content_type = request.headers.get("content-type", "application/octet-stream").split(";")[0]
    filename = request.headers.get("x-upload-filename")
    try:
        result = images.upload(
            session,
            participant_id=participant_id,
            data=body,
            filename=filename,
            content_type=content_type,
        )
    except ParticipantNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UnsupportedImageTypeError as exc:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc)) from exc
    except ImageTooLargeError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc
    except ImageStorageError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return ImageUploadResponse(participant_id=result.participant_id, image_url=result.public_url)


@router.get("/duos", response_model=list[DuoRead])
def list_all_duos(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[DuoRead]:
    return [DuoRead.model_validate(item) for item in list_duos(session)]


@router.post("/duos", response_model=DuoRead, status_code=status.HTTP_201_CREATED)
def create_one_duo(
    payload: DuoCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> DuoRead:
    try:
        duo = create_duo(
            session,
            first_participant_id=payload.participant1_id,
            second_participant_id=payload.participant2_id,
            duo_name=payload.duo_name,
        )
    except ParticipantNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SameParticipantError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DuplicateDuoError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return DuoRead.model_validate(duo)


@router.delete("/duos/{duo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_one_duo(
    duo_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        delete_duo(session, duo_id=duo_id)
    except DuoNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/categories/{category_id}/nominations", response_model=list[NominationRead])
def list_category_nominations(
    category_id: str,
    finalists_only: bool = False,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[NominationRead]:
    return _nominations(
        list_nominations(session, category_id=category_id, finalists_only=finalists_only)
    )


@router.post(
    "/categories/{category_id}/nominations",
    response_model=list[NominationRead],
    status_code=status.HTTP_201_CREATED,
)
def nominate(
    category_id: str,
    payload: NominateParticipantsRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[NominationRead]:
    try:
        created = nominate_participants(
            session, category_id=category_id, participant_ids=payload.participant_ids
        )
    except _NOT_FOUND as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CategoryKindError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DuplicateNominationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _nominations(created)


@router.post(
    "/categories/{category_id}/nominations/all",
    response_model=list[NominationRead],
    status_code=status.HTTP_201_CREATED,
)
def nominate_everyone(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[NominationRead]:
    """Nominate every participant that is not in the category yet."""

    try:
        created = nominate_all_participants(session, category_id=category_id)
    except _NOT_FOUND as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CategoryKindError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DuplicateNominationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _nominations(created)


@router.post(
    "/categories/{category_id}/nominations/duos",
    response_model=list[NominationRead],
    status_code=status.HTTP_201_CREATED,
)
def nominate_curated_duos(
    category_id: str,
    payload: NominateDuosRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[NominationRead]:
    try:
        created = nominate_duos(session, category_id=category_id, duo_ids=payload.duo_ids)
    except _NOT_FOUND as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CategoryKindError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DuplicateNominationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _nominations(created)


@router.delete("/nominations/{nomination_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_nomination(
    nomination_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        delete_nomination(session, nomination_id=nomination_id)
    except NominationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


__all__ = ["router"]
