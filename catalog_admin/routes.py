"""
HTTP routes for the catalog admin API and the admin pages.

Handlers decode the request on the event loop, then hand the blocking
store and image calls to a worker thread.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from catalog_admin.auth import (
    authenticate_user,
    current_username,
    end_session,
    is_authenticated,
    require_auth,
    start_session,
)
from catalog_admin.config import Settings
from catalog_admin.dependencies import CatalogBackend, get_app_settings, get_backend
from catalog_admin.records import (
    COURSES,
    PRODUCTS,
    new_course,
    new_product,
    product_changes,
)
from catalog_admin.schemas import (
    AuthStatusResponse,
    CourseResponse,
    DeleteResponse,
    LoginResponse,
    LogoutResponse,
    ProductResponse,
)
from catalog_admin.storage import validate_image

logger = logging.getLogger(__name__)

router = APIRouter()
pages_router = APIRouter()

FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass
class ImageUpload:
    data: bytes
    filename: str
    content_type: str


async def _read_fields(request: Request) -> tuple[dict, Optional[UploadFile]]:
    """
    Decode a JSON, urlencoded or multipart body into string fields plus the
    optional `image` upload.
    """
    content_type = request.headers.get("content-type", "")
    fields: dict = {}
    upload: Optional[UploadFile] = None

    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == "image" and value.filename:
                    upload = value
            else:
                fields[key] = value
        return fields, upload

    body = await request.body()
    if not body:
        return fields, upload
    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="JSON body must be an object")
    # Match form bodies, which only ever carry strings.
    fields = {
        key: value if value is None or isinstance(value, str) else str(value)
        for key, value in payload.items()
    }
    return fields, upload


async def _read_image(
    upload: Optional[UploadFile], settings: Settings
) -> Optional[ImageUpload]:
    if upload is None:
        return None
    data = await upload.read()
    validate_image(
        upload.filename, upload.content_type, len(data), settings.max_upload_bytes
    )
    return ImageUpload(
        data=data,
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
    )


def _store_image(backend: CatalogBackend, image: ImageUpload) -> str:
    return backend.images.upload(image.data, image.filename, image.content_type)


def _storage_failure(action: str, exc: Exception) -> HTTPException:
    logger.exception("Failed to %s", action)
    return HTTPException(status_code=500, detail=str(exc))


# Authentication

@router.post("/login", response_model=LoginResponse)
async def login(request: Request, backend: CatalogBackend = Depends(get_backend)):
    fields, _ = await _read_fields(request)
    username = fields.get("username")
    try:
        user = await run_in_threadpool(
            authenticate_user, backend.store, username, fields.get("password")
        )
    except Exception as exc:
        raise _storage_failure("look up user", exc) from exc
    if not user:
        logger.warning("Failed login attempt for username: %s", username)
        return JSONResponse(
            status_code=401,
            content={"success": False, "error": "Invalid credentials"},
        )
    start_session(request, user)
    logger.info("Successful login for user: %s", user["username"])
    return LoginResponse(success=True, message="Login successful")


@router.post("/logout", response_model=LogoutResponse)
def logout(request: Request):
    end_session(request)
    return LogoutResponse(success=True, message="Logged out successfully")


@router.get(
    "/auth/status",
    response_model=AuthStatusResponse,
    response_model_exclude_none=True,
)
def auth_status(request: Request):
    username = current_username(request)
    return AuthStatusResponse(authenticated=username is not None, username=username)


# Products

@router.get("/products")
def list_products(backend: CatalogBackend = Depends(get_backend)):
    try:
        return backend.store.select_all(PRODUCTS)
    except Exception as exc:
        raise _storage_failure("list products", exc) from exc


def _create_product(
    backend: CatalogBackend,
    settings: Settings,
    fields: dict,
    image: Optional[ImageUpload],
) -> dict:
    reference = _store_image(backend, image) if image else fields.get("image") or ""
    record = new_product(
        fields,
        image=reference,
        phone=settings.whatsapp_phone,
        greeting=settings.whatsapp_greeting,
    )
    return backend.store.insert(PRODUCTS, record)


@router.post(
    "/products",
    response_model=ProductResponse,
    response_model_exclude_unset=True,
    dependencies=[Depends(require_auth)],
)
async def create_product(
    request: Request,
    backend: CatalogBackend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings),
):
    fields, upload = await _read_fields(request)
    try:
        image = await _read_image(upload, settings)
        product = await run_in_threadpool(
            _create_product, backend, settings, fields, image
        )
    except Exception as exc:
        raise _storage_failure("create product", exc) from exc
    return ProductResponse(success=True, product=product)


def _update_product(
    backend: CatalogBackend,
    product_id: str,
    fields: dict,
    image: Optional[ImageUpload],
) -> dict:
    existing = backend.store.select_one(PRODUCTS, product_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Not found")

    changes = product_changes(fields)
    if image:
        # Not atomic: the old image is gone before the new one is stored.
        if existing.get("image"):
            backend.images.delete(existing["image"])
        changes["image"] = _store_image(backend, image)

    product = backend.store.update(PRODUCTS, product_id, changes)
    if product is None:
        raise HTTPException(status_code=404, detail="Not found")
    return product


@router.put(
    "/products/{product_id}",
    response_model=ProductResponse,
    response_model_exclude_unset=True,
    dependencies=[Depends(require_auth)],
)
async def update_product(
    product_id: str,
    request: Request,
    backend: CatalogBackend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings),
):
    fields, upload = await _read_fields(request)
    try:
        image = await _read_image(upload, settings)
        product = await run_in_threadpool(
            _update_product, backend, product_id, fields, image
        )
    except HTTPException:
        raise
    except Exception as exc:
        raise _storage_failure("update product", exc) from exc
    return ProductResponse(success=True, product=product)


@router.delete(
    "/products/{product_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_auth)],
)
def delete_product(product_id: str, backend: CatalogBackend = Depends(get_backend)):
    return _delete_record(PRODUCTS, product_id, backend)


# Courses

@router.get("/courses")
def list_courses(backend: CatalogBackend = Depends(get_backend)):
    try:
        return backend.store.select_all(COURSES)
    except Exception as exc:
        raise _storage_failure("list courses", exc) from exc


def _create_course(
    backend: CatalogBackend, fields: dict, image: Optional[ImageUpload]
) -> dict:
    reference = _store_image(backend, image) if image else fields.get("image") or ""
    return backend.store.insert(COURSES, new_course(fields, image=reference))


@router.post(
    "/courses",
    response_model=CourseResponse,
    response_model_exclude_unset=True,
    dependencies=[Depends(require_auth)],
)
async def create_course(
    request: Request,
    backend: CatalogBackend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings),
):
    fields, upload = await _read_fields(request)
    try:
        image = await _read_image(upload, settings)
        course = await run_in_threadpool(_create_course, backend, fields, image)
    except Exception as exc:
        raise _storage_failure("create course", exc) from exc
    return CourseResponse(success=True, course=course)


@router.delete(
    "/courses/{course_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_auth)],
)
def delete_course(course_id: str, backend: CatalogBackend = Depends(get_backend)):
    return _delete_record(COURSES, course_id, backend)


def _delete_record(
    collection: str, record_id: str, backend: CatalogBackend
) -> DeleteResponse:
    try:
        existing = backend.store.select_one(collection, record_id)
        if not existing:
            raise HTTPException(status_code=404, detail="Not found")
        if existing.get("image"):
            backend.images.delete(existing["image"])
        backend.store.delete(collection, record_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise _storage_failure(f"delete {record_id} from {collection}", exc) from exc
    return DeleteResponse(success=True, message="Deleted")


# Admin pages

@pages_router.get("/admin", include_in_schema=False)
def admin_dashboard(request: Request, settings: Settings = Depends(get_app_settings)):
    if is_authenticated(request):
        return FileResponse(Path(settings.public_dir) / "admin-dashboard.html")
    return RedirectResponse("/admin-login.html", status_code=302)


@pages_router.get("/admin-login.html", include_in_schema=False)
def admin_login_page(settings: Settings = Depends(get_app_settings)):
    return FileResponse(Path(settings.public_dir) / "admin-login.html")
