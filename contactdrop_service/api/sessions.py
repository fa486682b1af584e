import logging

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import PlainTextResponse, Response

from ..exceptions import SessionFullError, SessionNotFoundError
from ..models.sessions import ContactRequest, CreateSessionRequest
from ..services.sanitize import sanitise
from ..services.vcard import VCARD_FILENAME, VCARD_MEDIA_TYPE
from .payload import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _get_session_service(request: Request):
    svc = request.app.state.session_service
    if not svc:
        raise HTTPException(status_code=503, detail="Session service not available")
    return svc


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/create")
async def create_session(request: Request):
    svc = _get_session_service(request)
    body = await parse_body(request, CreateSessionRequest)
    if not body.sessionName or not body.minutes:
        raise HTTPException(status_code=422, detail="Missing fields")
    if not sanitise(body.sessionName):
        raise HTTPException(status_code=422, detail="Invalid input")

    session = await svc.create_session(body.sessionName, body.minutes)
    return {"id": session.id}


@router.get("/session/{session_id}")
async def get_session(request: Request, session_id: str):
    svc = _get_session_service(request)
    session = await svc.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Not found")
    return session.model_dump(by_alias=True)


@router.post("/session/{session_id}/contact")
async def add_contact(request: Request, session_id: str):
    svc = _get_session_service(request)
    limiter = request.app.state.rate_limiter
    ip = _client_ip(request)
    if limiter.check(ip):
        logger.warning("Rate limit exceeded for %s", ip)
        retry_after = max(1, limiter.window_ms // 1000)
        raise HTTPException(status_code=429, detail="Too many requests",
                            headers={"Retry-After": str(retry_after)})

    body = await parse_body(request, ContactRequest)
    if not body.name or not body.phone:
        raise HTTPException(status_code=422, detail="Name and phone required")

    name = sanitise(body.name)
    phone = sanitise(body.phone)
    if not name or not phone:
        raise HTTPException(status_code=422, detail="Invalid input")

    try:
        await svc.add_contact(session_id, name, phone)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except SessionFullError:
        raise HTTPException(status_code=422, detail="Session full")
    return {"success": True}


@router.get("/session/{session_id}/contacts.vcf")
async def export_contacts(request: Request, session_id: str):
    svc = _get_session_service(request)
    vcf = await svc.export_vcards(session_id)
    if vcf is None:
        return PlainTextResponse("Not found", status_code=404)

    return Response(
        content=vcf,
        media_type=VCARD_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{VCARD_FILENAME}"'},
    )
