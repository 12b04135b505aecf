from typing import Literal

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from genstudio.auth.deps import get_current_session, get_user_backend, require_capability
from genstudio.auth.permissions import GENERATE
from genstudio.backend.client import BackendClient
from genstudio.backend.session import Session
from genstudio.generations.executor import GenerationAttempt, GenerationExecutor, registry
from genstudio.generations.upstream import GenerationRequest, ReferenceFile, build_generator
from genstudio.plans import catalog
from genstudio.subscriptions.reader import read_subscription

router = APIRouter(prefix="/generations", tags=["generations"])


def get_generator():
    return build_generator()


@router.get("/options")
async def generation_options(
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_user_backend),
):
    sub = await read_subscription(backend, session.user_id)
    trial = bool(sub and sub.plan_name == catalog.FREE_PLAN_NAME)
    return {
        "costs": dict(catalog.CREDIT_COSTS),
        "durations": list(catalog.DURATIONS),
        "resolutions": list(catalog.RESOLUTIONS),
        "sub_types": list(catalog.VIDEO_SUB_KINDS),
        "default_duration": catalog.DEFAULT_DURATION,
        "default_resolution": catalog.DEFAULT_RESOLUTION,
        "is_active": bool(sub and sub.is_active),
        "credits_remaining": sub.credits_remaining if sub else 0,
        "trial_mode": trial,
        "default_prompt": catalog.TRIAL_PROMPT if trial else "",
    }


@router.post("")
async def start_generation(
    type: Literal["image", "video"] = Form(...),
    prompt: str = Form(..., min_length=1),
    duration: str = Form(catalog.DEFAULT_DURATION),
    resolution: str = Form(catalog.DEFAULT_RESOLUTION),
    subType: str | None = Form(None),
    file: UploadFile | None = File(None),
    wait: bool = False,
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_user_backend),
    generator=Depends(get_generator),
    _profile: dict = Depends(require_capability(GENERATE)),
):
    reference = None
    if file is not None and file.filename:
        reference = ReferenceFile(
            filename=file.filename,
            content=await file.read(),
            content_type=file.content_type or "application/octet-stream",
        )

    request = GenerationRequest(
        kind=type,
        prompt=prompt,
        duration=duration,
        resolution=resolution,
        sub_kind=subType or None,
        file=reference,
    )
    attempt = GenerationAttempt(account_id=session.user_id, request=request)
    executor = GenerationExecutor(backend, generator)

    # denials surface here as 401/402/403
    snapshot, gate = await executor.validate(attempt)
    registry.add(attempt)

    if wait:
        await executor.execute(attempt, snapshot, gate)
        return attempt.to_dict()

    registry.spawn(executor.execute(attempt, snapshot, gate))
    return JSONResponse(status_code=202, content=attempt.to_dict())


@router.get("")
def list_generations(session: Session = Depends(get_current_session)):
    items = [a.to_dict() for a in registry.for_account(session.user_id)]
    return {"value": items, "count": len(items)}


@router.get("/{attempt_id}")
def get_generation(attempt_id: str, session: Session = Depends(get_current_session)):
    return registry.get(attempt_id, session.user_id).to_dict()
