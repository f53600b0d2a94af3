from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from poi_editor.api.schemas import (
    FeatureCreate,
    FeatureUpdate,
    FormSubmission,
    ImportSummary,
    MapPoint,
    SearchRequest,
)
from poi_editor.config import Settings, get_settings
from poi_editor.errors import (
    FormValidationError,
    InvalidAttributesError,
    InvalidCoordinatesError,
    ParseError,
    StorageWriteError,
    SurfaceNotInitializedError,
)
from poi_editor.forms import PointFormData, apply_submission, request_from_selection
from poi_editor.map_layer import MapSynchronizer, UpdateCycle
from poi_editor.models import SearchState, to_feature_collection
from poi_editor.search.filters import filter_features
from poi_editor.storage import KeyValueStorage, SQLiteKeyValueStorage
from poi_editor.store import PointStore

logger = logging.getLogger("poi.api")


def _collection_response(
    store: PointStore, search: Optional[SearchState] = None
) -> Dict[str, Any]:
    search = search if search is not None else store.search_state
    view = filter_features(store.features(), search)
    out = to_feature_collection(view)
    out["total"] = len(store)
    out["filtered"] = len(view)
    out["search"] = search.to_dict()
    return out


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorage] = None,
    surface_factory: Optional[Callable] = None,
) -> FastAPI:
    settings = settings or get_settings()
    if storage is None:
        storage = SQLiteKeyValueStorage(settings.storage_path)

    store = PointStore(storage, storage_key=settings.storage_key)
    cycle = UpdateCycle()
    sync = MapSynchronizer(surface_factory, cycle=cycle, config=settings.map_config())
    sync.initialize()
    sync.bind(store)
    cycle.flush()

    app = FastAPI(title="POI Editor")
    app.state.settings = settings
    app.state.store = store
    app.state.sync = sync
    app.state.cycle = cycle

    # Single writer: handlers hold this while touching store or map state.
    lock = threading.Lock()
    app.state.lock = lock

    def _map_state() -> Dict[str, Any]:
        cycle.flush()
        return sync.snapshot()

    @app.exception_handler(ParseError)
    async def _parse_error(_request: Request, exc: ParseError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StorageWriteError)
    async def _storage_error(_request: Request, exc: StorageWriteError):
        def _flush():
            with lock:
                cycle.flush()

        await run_in_threadpool(_flush)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/api/health")
    def health():
        with lock:
            return {"status": "ok", "features": len(store), "map_active": sync.active}

    @app.get("/api/features")
    def list_features(q: Optional[str] = None, category: Optional[str] = None):
        """Query params narrow this response only; `PUT /api/search` sets the shared filter."""
        with lock:
            if q is None and category is None:
                return _collection_response(store)
            current = store.search_state
            search = SearchState(
                q if q is not None else current.term,
                category if category is not None else current.category,
            )
            return _collection_response(store, search)

    @app.get("/api/features/{feature_id}")
    def get_feature(feature_id: str):
        with lock:
            feature = store.get(feature_id)
            if feature is None:
                raise HTTPException(status_code=404, detail="Feature not found")
            return feature.to_dict()

    @app.post("/api/features", status_code=201)
    def create_feature(payload: FeatureCreate):
        attributes = dict(payload.properties)
        attributes["name"] = payload.name
        attributes["category"] = payload.category
        with lock:
            try:
                feature = store.add(list(payload.coordinates), attributes)
            except (InvalidCoordinatesError, InvalidAttributesError) as e:
                raise HTTPException(status_code=400, detail=str(e))
            cycle.flush()
            return feature.to_dict()

    @app.patch("/api/features/{feature_id}")
    def update_feature(feature_id: str, payload: FeatureUpdate):
        with lock:
            try:
                feature = store.update(feature_id, payload.partial())
            except InvalidAttributesError as e:
                raise HTTPException(status_code=400, detail=str(e))
            cycle.flush()
            return {
                "updated": feature is not None,
                "feature": feature.to_dict() if feature else None,
            }

    @app.delete("/api/features/{feature_id}")
    def delete_feature(feature_id: str):
        with lock:
            removed = store.remove(feature_id)
            cycle.flush()
            return {"removed": removed}

    @app.get("/api/categories")
    def categories():
        with lock:
            return {"categories": store.available_categories()}

    @app.put("/api/search")
    def set_search(payload: SearchRequest):
        with lock:
            store.set_filter(payload.term, payload.category)
            cycle.flush()
            return _collection_response(store)

    @app.delete("/api/search")
    def clear_search():
        with lock:
            store.clear_filter()
            cycle.flush()
            return _collection_response(store)

    def _import(body: bytes) -> Dict[str, Any]:
        with lock:
            result = store.import_collection(body)
            cycle.flush()
            return result.to_dict()

    @app.post("/api/import", response_model=ImportSummary)
    async def import_geojson(request: Request):
        body = await request.body()
        return await run_in_threadpool(_import, body)

    @app.get("/api/export")
    def export_geojson():
        with lock:
            content = store.export_collection()
        return Response(
            content=content,
            media_type="application/geo+json",
            headers={
                "Content-Disposition": f'attachment; filename="{settings.export_filename}"'
            },
        )

    @app.post("/api/clear")
    def clear_data():
        with lock:
            store.clear()
            sync.clear_selection()
            cycle.flush()
        return {"status": "cleared"}

    @app.get("/api/map")
    def map_state():
        with lock:
            return _map_state()

    @app.post("/api/map/init")
    def map_init():
        with lock:
            sync.initialize()
            sync.on_features_changed(store.filtered_view())
            return _map_state()

    @app.post("/api/map/destroy")
    def map_destroy():
        with lock:
            sync.destroy()
            return _map_state()

    @app.post("/api/map/click")
    def map_click(point: MapPoint):
        with lock:
            try:
                sync.handle_click(point.lon, point.lat)
            except SurfaceNotInitializedError as e:
                raise HTTPException(status_code=409, detail=str(e))
            return _map_state()

    @app.post("/api/map/hover")
    def map_hover(point: MapPoint):
        with lock:
            try:
                cursor = sync.handle_hover(point.lon, point.lat)
            except SurfaceNotInitializedError as e:
                raise HTTPException(status_code=409, detail=str(e))
        return {"cursor": cursor}

    @app.post("/api/map/clear-selection")
    def map_clear_selection():
        with lock:
            sync.clear_selection()
            return _map_state()

    @app.post("/api/map/form")
    def map_form(payload: FormSubmission):
        with lock:
            form_request = request_from_selection(sync)
            if form_request is None:
                raise HTTPException(status_code=409, detail="No point selected")
            try:
                feature = apply_submission(
                    store, form_request, PointFormData(payload.name, payload.category)
                )
            except FormValidationError as e:
                raise HTTPException(status_code=422, detail=e.errors)
            if form_request.mode == "add":
                sync.clear_selection()
            logger.info(
                "form %s applied to %s", form_request.mode, feature.id if feature else None
            )
            out = _map_state()
        out["mode"] = form_request.mode
        out["feature"] = feature.to_dict() if feature else None
        return out

    return app


_default_app: Optional[FastAPI] = None


def __getattr__(name: str):
    # Built on first access so importing the module never touches storage.
    global _default_app
    if name == "app":
        if _default_app is None:
            _default_app = create_app()
        return _default_app
    raise AttributeError(name)
