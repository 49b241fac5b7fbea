from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....domain.entities import Identity
from ....infrastructure.db import get_db
from ....infrastructure.repositories import HousingRepository
from ....infrastructure.cache import get_cache, set_cache, versioned_key, bump_version, BUILDINGS_TREE_KEY
from ....infrastructure.metrics import cache_hits_total, cache_misses_total
from ..authz import get_identity, require_staff
from ..schemas import (
    BuildingCreate, BuildingOut, BuildingTree,
    RoomCreate, RoomOut,
    BedCreate, BedOut,
)

router = APIRouter(tags=["housing"])


@router.get("/buildings", response_model=list[BuildingTree])
def list_buildings(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    # Кэширование дерева корпус -> комнаты -> кровати
    key = versioned_key(BUILDINGS_TREE_KEY)
    cached = get_cache(key) if key else None
    if cached is not None:
        cache_hits_total.inc()
        return cached

    cache_misses_total.inc()
    rows = HousingRepository(db).tree()
    result = [BuildingTree.model_validate(row) for row in rows]
    if key:
        set_cache(key, [r.model_dump(mode="json", by_alias=True) for r in result])
    return result

# --- Admin / dorm manager only:

@router.post("/buildings", response_model=BuildingOut, dependencies=[Depends(require_staff)])
def create_building(payload: BuildingCreate, db: Session = Depends(get_db)):
    row = HousingRepository(db).create_building(payload.name)
    # Инвалидируем кэш дерева
    bump_version(BUILDINGS_TREE_KEY)
    return row


@router.post("/rooms", response_model=RoomOut, dependencies=[Depends(require_staff)])
def create_room(payload: RoomCreate, db: Session = Depends(get_db)):
    row = HousingRepository(db).create_room(payload.building_id, payload.floor, payload.number)
    bump_version(BUILDINGS_TREE_KEY)
    return row


@router.post("/beds", response_model=BedOut, dependencies=[Depends(require_staff)])
def create_bed(payload: BedCreate, db: Session = Depends(get_db)):
    row = HousingRepository(db).create_bed(payload.room_id, payload.label)
    bump_version(BUILDINGS_TREE_KEY)
    return row
