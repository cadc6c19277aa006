# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from innvo.config import configure_logging, engine
from innvo.exceptions import BusinessException, SearchIndexError
from innvo.index.fulltext import component_search_index
from innvo.schema.validation import ENTITY_NAME
from innvo.schema.view_models import ErrorResponse
from innvo.views.health import router as health_router
from innvo.views.main import router as main_router
from innvo.views.utils import failure_alert

logger = logging.getLogger(__name__)

app = FastAPI(title="innvo")


@app.on_event("startup")
async def on_startup():
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        await component_search_index.ensure_index()
    except SearchIndexError as e:
        # writes will be retried and reconciled once the cluster is reachable
        logger.warning(f"Search index not ready at startup: {e}")


@app.on_event("shutdown")
async def on_shutdown():
    await component_search_index.close()
    await engine.dispose()


@app.exception_handler(BusinessException)
async def business_exception_handler(request: Request, exc: BusinessException):
    if exc.http_status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.http_status,
        content=ErrorResponse(code=exc.error_code, message=exc.message).model_dump(),
        headers=failure_alert(exc.entity_name, exc.error_code),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content={"code": "validation", "message": "invalid request", "errors": jsonable_errors(exc)},
        headers=failure_alert(ENTITY_NAME, "validation"),
    )


@app.exception_handler(SearchIndexError)
async def search_index_exception_handler(request: Request, exc: SearchIndexError):
    logger.error(f"{request.method} {request.url.path} search index failure: {exc}")
    return JSONResponse(
        status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        content={"code": "searchindex", "message": str(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]


app.include_router(main_router, prefix="/api")
app.include_router(health_router, prefix="/api")
