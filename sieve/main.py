from __future__ import annotations
import logging
from typing import Any, Dict, List

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import CORS_ALLOW_ORIGINS, LOG_LEVEL, SQL_PARAMSTYLE
from .errors import ConfigError, ValidationException
from .filtering import filter_methods
from .registry import Registry
from .validation import CONTEXTS, Validator

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("api")

app = FastAPI(title="Sieve Filter & Validation Service", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

REG = Registry()

# Query parameters that drive paging rather than filtering.
PAGING_PARAMS = {"page", "perPage", "per_page"}


class ValidationErrorResponse(BaseModel):
    message: str
    errors: Dict[str, List[str]]


@app.exception_handler(ValidationException)
async def _validation_failed(request: Request, exc: ValidationException):
    log.warning("Validation failed on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.exception_handler(ConfigError)
async def _config_broken(request: Request, exc: ConfigError):
    log.error("Entity configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.on_event("startup")
def _startup():
    REG.load()


def _request_input(request: Request) -> Dict[str, Any]:
    """
    Query string -> filter input. Repeated keys and 'key[]' become lists:
    ?status=draft&status=published  or  ?status[]=draft
    """
    out: Dict[str, Any] = {}
    qp = request.query_params
    for key in qp.keys():
        is_list = key.endswith("[]")
        name = key[:-2] if is_list else key
        if name in PAGING_PARAMS:
            continue
        values = qp.getlist(key)
        if name in out:
            prev = out[name]
            out[name] = (prev if isinstance(prev, list) else [prev]) + values
        elif is_list or len(values) > 1:
            out[name] = list(values)
        else:
            out[name] = values[0]
    return out


@app.get("/healthz")
def health():
    return {"ok": True, "entities": REG.names()}


@app.get("/entities")
def list_entities():
    out = []
    for name in REG.names():
        entity = REG.ensure_entity(name)
        out.append({
            "entity": name,
            "table": entity.model.__table__,
            "filter": entity.filter_class.__name__,
            "filterMethods": filter_methods(entity.filter_class),
            "maxPageSize": entity.max_page_size,
            "rules": {context: entity.rules_for(context) for context in CONTEXTS},
        })
    return {"entities": out}


@app.get("/entities/{name}/query")
def query_entity(
    name: str,
    request: Request,
    page: int = 1,
    per_page: int = Query(0, alias="perPage"),
    per_page_snake: int = Query(0, alias="per_page"),
):
    """
    Run the entity's filter over the query string and return the paged
    SELECT plus its COUNT(*) mirror.
    """
    try:
        entity = REG.ensure_entity(name)
        params = _request_input(request)
        per_page_applied = entity.cap_page_size(per_page or per_page_snake)
        result = entity.model.paginate_filter(
            params,
            page=page,
            per_page=per_page_applied,
            filter_class=entity.filter_class,
            paramstyle=SQL_PARAMSTYLE,
        )
        return {**result.to_dict(), "entity": name, "input": params}
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post(
    "/entities/{name}/validate",
    responses={422: {"model": ValidationErrorResponse}},
)
def validate_entity(
    name: str,
    payload: Dict[str, Any] = Body(..., description="Input to validate"),
    context: str = "create",
):
    try:
        entity = REG.ensure_entity(name)
        rules = entity.rules_for(context)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    data = Validator(payload, rules, entity.messages, entity.attributes).validate()
    return {"valid": True, "entity": name, "context": context, "data": data}


@app.post("/reload")
def reload_registry():
    try:
        summary = REG.refresh_all()
        return {"reloaded": summary}
    except ConfigError as e:
        log.exception("Reload failed")
        raise HTTPException(status_code=500, detail=str(e))
