"""Domain models for addresses, routes, versions and shares."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MergeDecision(str, Enum):
    MERGE = "merge"
    KEEP_SEPARATE = "keep_separate"


class RouteStatus(str, Enum):
    DRAFT = "draft"
    OPTIMIZED = "optimized"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ShareStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass(slots=True, frozen=True)
class DuplicateMatch:
    """Two address texts judged similar enough to be the same place."""

    original: str
    duplicate: str
    similarity: float
    confidence: Confidence


@dataclass(slots=True)
class MergeAction:
    """Suggested resolution for one unordered duplicate pair.

    ``original_id`` and ``duplicate_ids`` are set by ``attach_row_ids`` from the
    stored rows holding each text; suggestions alone only carry the texts.
    """

    action: MergeDecision
    reason: str
    original: str
    duplicate: str
    similarity: float
    original_id: Optional[int] = None
    duplicate_ids: list[int] = field(default_factory=list)


@dataclass(slots=True)
class DuplicateReport:
    total: int
    high: int
    medium: int
    low: int
    summary: str


@dataclass(slots=True)
class Stop:
    """A rider address or embarkation point belonging to a route."""

    id: str
    name: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    arrival_time: Optional[str] = None
    zip_code: Optional[str] = None
    city: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(slots=True)
class RoutePoint:
    """A persisted stop of a route with its position in the visiting order."""

    id: int
    route_id: int
    name: str
    address: str
    sequence_number: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    arrival_time: Optional[str] = None


@dataclass(slots=True)
class Route:
    id: int
    name: str
    status: RouteStatus
    total_distance: float
    description: Optional[str] = None
    estimated_time: Optional[int] = None
    original_distance: Optional[float] = None
    savings: Optional[float] = None
    savings_percentage: Optional[float] = None
    algorithm_used: Optional[str] = None
    iterations: int = 1
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    max_cluster_distance_km: Optional[float] = None
    max_route_minutes: Optional[int] = None
    stops: list[Stop] = field(default_factory=list)
    points: list[RoutePoint] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class RouteVersion:
    """Immutable snapshot of a route's points and metrics."""

    id: int
    route_id: int
    version_number: int
    total_distance: float
    estimated_time: Optional[int]
    savings: Optional[float]
    savings_percentage: Optional[float]
    points: tuple[Stop, ...]
    change_description: str
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class RouteShare:
    id: int
    route_id: int
    token: str
    driver_email: str
    platform: str
    status: ShareStatus
    send_count: int = 1
    view_count: int = 0
    click_count: int = 0
    created_at: Optional[datetime] = None
    last_sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
