import json
from typing import TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_payload(request: Request) -> dict:
    """Decode a JSON or urlencoded request body into a dict.

    An empty body decodes to ``{}`` so that missing fields are reported by the
    handler rather than as a parse failure.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        return dict(form)

    body = await request.body()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Malformed JSON body")
    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="Invalid input")
    return data


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    data = await read_payload(request)
    try:
        return model.model_validate(data)
    except ValidationError:
        raise HTTPException(status_code=422, detail="Invalid input")
