"""Plugin catalog, authoring, review and download routes."""

import logging
import math
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from marketplace.api.deps import (
    get_authoring_service,
    get_catalog_service,
    get_current_user,
    get_delivery_service,
    get_optional_user,
)
from marketplace.models.plugin import (
    PluginChanges,
    PluginDetail,
    PluginDraft,
    PluginFilters,
    PluginSummary,
    ReviewCreate,
    SortOrder,
    VersionDetail,
    VersionDraft,
)
from marketplace.models.purchase import PurchaseSummary
from marketplace.models.user import User
from marketplace.services.authoring_service import AuthoringService
from marketplace.services.catalog_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, CatalogService
from marketplace.services.delivery_service import DeliveryService

logger = logging.getLogger(__name__)

router = APIRouter()


class PluginResponse(PluginDetail):
    """Plugin detail with the viewer's purchase records.

    Attributes:
        purchases: The viewer's purchases of this plugin, None when anonymous.
    """

    purchases: Optional[list[PurchaseSummary]] = None


class PluginListResponse(BaseModel):
    """Response for plugin list.

    Attributes:
        plugins: Plugins on the page.
        total: Total matching count.
        page: Current page.
        per_page: Items per page.
        pages: Number of pages.
    """

    plugins: list[PluginSummary]
    total: int
    page: int
    per_page: int
    pages: int


class MessageResponse(BaseModel):
    message: str


def content_disposition(filename: str) -> str:
    """Build an attachment header value for a download file name."""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


@router.get("", response_model=PluginListResponse)
async def list_plugins(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
) -> PluginListResponse:
    """List plugins with filters, sorting and pagination.

    Args:
        page: Page number.
        limit: Items per page.
        category: Exact category.
        featured: Featured flag.
        search: Case-insensitive substring of name or description.
        sort: popular, price-low, price-high or rating; newest otherwise.
        service: Catalog service.

    Returns:
        Paginated plugin list.
    """
    filters = PluginFilters(
        category=category or None,
        featured=featured,
        search=search or None,
    )
    summaries, total = await service.list_plugins(filters, SortOrder.parse(sort), page, limit)
    return PluginListResponse(
        plugins=summaries,
        total=total,
        page=page,
        per_page=limit,
        pages=math.ceil(total / limit),
    )


@router.get("/user", response_model=list[PluginSummary])
async def list_my_plugins(
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
) -> list[PluginSummary]:
    plugins = await service.list_mine(user.id)
    return [PluginSummary.from_plugin(p) for p in plugins]


@router.get("/{plugin_id}", response_model=PluginResponse)
async def get_plugin(
    plugin_id: str,
    user: Optional[User] = Depends(get_optional_user),
    service: CatalogService = Depends(get_catalog_service),
) -> PluginResponse:
    """Get plugin details.

    Authenticated viewers also get their purchase records for the plugin.

    Args:
        plugin_id: Plugin ID.
        user: Current user (optional).
        service: Catalog service.

    Returns:
        Plugin details.
    """
    plugin, purchases = await service.get_plugin(plugin_id, user.id if user else None)
    return PluginResponse(
        **PluginDetail.from_plugin(plugin).model_dump(),
        purchases=(
            [PurchaseSummary.from_purchase(p) for p in purchases]
            if purchases is not None
            else None
        ),
    )


@router.post("", response_model=PluginDetail, status_code=status.HTTP_201_CREATED)
async def create_plugin(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    features: Optional[str] = Form(None),
    requirements: Optional[str] = Form(None),
    version: Optional[str] = Form(None),
    minecraft_version: Optional[str] = Form(None),
    plugin_file: Optional[UploadFile] = File(None),
    thumbnail_file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: AuthoringService = Depends(get_authoring_service),
) -> PluginDetail:
    """Create a plugin from a multipart upload.

    Args:
        name: Plugin name.
        description: Plugin description.
        category: Catalog category.
        price: Price, 0 when omitted.
        features: JSON array of feature strings.
        requirements: Free-text requirements.
        version: Initial version number.
        minecraft_version: Game server compatibility tag.
        plugin_file: Plugin archive (.jar).
        thumbnail_file: Thumbnail image.
        user: Current user.
        service: Authoring service.

    Returns:
        Created plugin.
    """
    draft = PluginDraft(
        name=name,
        description=description,
        category=category,
        price=price,
        features=features,
        requirements=requirements,
        version=version,
        minecraft_version=minecraft_version,
    )
    plugin = await service.create_plugin(user.id, draft, plugin_file, thumbnail_file)
    return PluginDetail.from_plugin(plugin)


@router.put("/{plugin_id}", response_model=PluginDetail)
async def update_plugin(
    plugin_id: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    features: Optional[str] = Form(None),
    requirements: Optional[str] = Form(None),
    thumbnail_file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: AuthoringService = Depends(get_authoring_service),
) -> PluginDetail:
    """Update plugin metadata. Only supplied fields change."""
    changes = PluginChanges(
        name=name,
        description=description,
        category=category,
        price=price,
        features=features,
        requirements=requirements,
    )
    plugin = await service.update_plugin(user.id, plugin_id, changes, thumbnail_file)
    return PluginDetail.from_plugin(plugin)


@router.post(
    "/{plugin_id}/versions",
    response_model=VersionDetail,
    status_code=status.HTTP_201_CREATED,
)
async def add_version(
    plugin_id: str,
    version_number: Optional[str] = Form(None),
    minecraft_version: Optional[str] = Form(None),
    changelog: Optional[str] = Form(None),
    plugin_file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: AuthoringService = Depends(get_authoring_service),
) -> VersionDetail:
    """Upload a new version of a plugin.

    Args:
        plugin_id: Plugin ID.
        version_number: Version number.
        minecraft_version: Game server compatibility tag.
        changelog: Release notes.
        plugin_file: Plugin archive (.jar).
        user: Current user.
        service: Authoring service.

    Returns:
        Appended version.
    """
    draft = VersionDraft(
        version_number=version_number,
        minecraft_version=minecraft_version,
        changelog=changelog,
    )
    version = await service.add_version(user.id, plugin_id, draft, plugin_file)
    return VersionDetail.from_version(version)


@router.post(
    "/{plugin_id}/reviews",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_review(
    plugin_id: str,
    data: ReviewCreate,
    user: User = Depends(get_current_user),
    service: DeliveryService = Depends(get_delivery_service),
) -> MessageResponse:
    await service.add_review(user.id, plugin_id, data.rating, data.comment)
    return MessageResponse(message="Review added")


@router.get("/{plugin_id}/download")
async def download_plugin(
    plugin_id: str,
    user: User = Depends(get_current_user),
    service: DeliveryService = Depends(get_delivery_service),
) -> StreamingResponse:
    """Download the latest version of a purchased or own plugin.

    Args:
        plugin_id: Plugin ID.
        user: Current user.
        service: Delivery service.

    Returns:
        Streaming response with the plugin archive.
    """
    download = await service.download(user.id, plugin_id)

    headers = {"Content-Disposition": content_disposition(download.filename)}
    if download.size_bytes is not None:
        headers["Content-Length"] = str(download.size_bytes)

    return StreamingResponse(
        download.chunks,
        media_type=download.media_type,
        headers=headers,
    )
