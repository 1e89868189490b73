# File: backend/app/api/v1/stores.py
# Version: v0.2.0
"""
Feature / enzyme store endpoints:
- GET    /enzymes            /features            ← list entries
- GET    /enzymes/{name}     /features/{name}     ← exact entry, else fuzzy matches (404 when none)
- PUT    /enzymes/{name}     /features/{name}     ← create/update (400 on invalid value)
- DELETE /enzymes/{name}     /features/{name}     ← delete (404 when missing)
"""

from __future__ import annotations

from typing import Callable, List

from fastapi import APIRouter, Depends, HTTPException, Response

from backend.app.api.v1.deps import get_enzyme_db, get_feature_db
from backend.app.api.v1.schemas import StoreEntry, StoreValue
from backend.app.services.tab_store import TabStore

router = APIRouter(tags=["stores"])


def _register(prefix: str, provider: Callable[[], TabStore]) -> None:
    @router.get(f"/{prefix}", response_model=List[StoreEntry])
    def list_entries(store: TabStore = Depends(provider)):
        return [StoreEntry(name=n, value=v) for n, v in store.items()]

    @router.get(f"/{prefix}/{{name}}", response_model=List[StoreEntry])
    def find_entry(name: str, store: TabStore = Depends(provider)):
        hits = store.find(name)
        if not hits:
            raise HTTPException(status_code=404, detail=f"No {store.kind} matches {name!r}")
        return [StoreEntry(name=n, value=v) for n, v in hits]

    @router.put(f"/{prefix}/{{name}}", response_model=StoreEntry)
    def set_entry(name: str, payload: StoreValue, response: Response, store: TabStore = Depends(provider)):
        try:
            updated = store.set(name, payload.value)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        response.status_code = 200 if updated else 201
        return StoreEntry(name=name.strip(), value=store.get(name.strip()) or "")

    @router.delete(f"/{prefix}/{{name}}", status_code=204)
    def delete_entry(name: str, store: TabStore = Depends(provider)):
        if not store.delete(name):
            raise HTTPException(status_code=404, detail=f"No {store.kind} named {name!r}")
        return Response(status_code=204)


_register("enzymes", get_enzyme_db)
_register("features", get_feature_db)
