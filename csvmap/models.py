"""
Data model shared by the parsing, detection and derivation stages.

Rows are plain dicts of header -> string. Everything derived from them is
recomputed in full whenever inputs change, so these types are never patched
in place by the pipeline.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from csvmap.constants import DEFAULT_STYLE

Row = Dict[str, str]


@dataclass
class Table:
    """Rectangular result of parsing one CSV text."""
    headers: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    preview_rows: List[Row] = field(default_factory=list)
    total_rows: int = 0
    parse_errors: List[str] = field(default_factory=list)
    delimiter: str = ','

    def to_dict(self):
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class TimelineFields:
    """Point-in-time columns."""
    year_field: Optional[str] = None
    date_field: Optional[str] = None
    day_of_year_field: Optional[str] = None


@dataclass(frozen=True)
class RangeFields:
    """Interval column pairs."""
    year_from_field: Optional[str] = None
    year_to_field: Optional[str] = None
    date_from_field: Optional[str] = None
    date_to_field: Optional[str] = None


@dataclass(frozen=True)
class RegionFields:
    """Columns read while assembling regions."""
    feature_id: str = 'featureId'
    part: str = 'part'
    order: str = 'order'
    color: str = 'color'
    weight: str = 'weight'
    opacity: str = 'opacity'
    fill_color: str = 'fillColor'
    fill_opacity: str = 'fillOpacity'


@dataclass(frozen=True)
class HeaderRoles:
    """Detected column roles. None means the role is not available."""
    lat_field: Optional[str] = None
    lon_field: Optional[str] = None
    feature_type_field: Optional[str] = None
    year_field: Optional[str] = None
    date_field: Optional[str] = None
    day_of_year_field: Optional[str] = None
    year_from_field: Optional[str] = None
    year_to_field: Optional[str] = None
    date_from_field: Optional[str] = None
    date_to_field: Optional[str] = None

    @property
    def timeline_fields(self) -> TimelineFields:
        return TimelineFields(
            year_field=self.year_field,
            date_field=self.date_field,
            day_of_year_field=self.day_of_year_field,
        )

    @property
    def range_fields(self) -> RangeFields:
        return RangeFields(
            year_from_field=self.year_from_field,
            year_to_field=self.year_to_field,
            date_from_field=self.date_from_field,
            date_to_field=self.date_to_field,
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class PointFeature:
    """One point derived from one row."""
    id: str
    lat: float
    lon: float
    source_row: Row


@dataclass
class ResolvedStyle:
    """Leaflet path options for one region part."""
    color: str = DEFAULT_STYLE['color']
    weight: float = DEFAULT_STYLE['weight']
    opacity: float = DEFAULT_STYLE['opacity']
    fill_color: str = DEFAULT_STYLE['fillColor']
    fill_opacity: float = DEFAULT_STYLE['fillOpacity']

    def to_dict(self) -> Dict[str, Any]:
        """Leaflet option names (camelCase)."""
        return {
            'color': self.color,
            'weight': self.weight,
            'opacity': self.opacity,
            'fillColor': self.fill_color,
            'fillOpacity': self.fill_opacity,
        }


@dataclass
class RegionFeature:
    """One closed ring of a (possibly multi-part) region."""
    id: str
    feature_id: str
    part: str
    coordinates: List[Tuple[float, float]]
    style: ResolvedStyle
    source_row: Optional[Row] = None


@dataclass(frozen=True)
class CsvFile:
    """One loaded CSV file and its current lat/lon mapping."""
    id: str
    name: str
    size: int
    table: Table
    lat_field: Optional[str] = None
    lon_field: Optional[str] = None
    parse_errors: List[str] = field(default_factory=list)
    last_modified: Optional[float] = None

    @property
    def headers(self) -> List[str]:
        return self.table.headers

    @property
    def rows(self) -> List[Row]:
        return self.table.rows


@dataclass
class PointDerivation:
    points: List[PointFeature] = field(default_factory=list)
    skipped_invalid_coord: int = 0
    skipped_by_timeline: int = 0
    reason: Optional[str] = None


@dataclass
class RegionDerivation:
    polygons: List[RegionFeature] = field(default_factory=list)
    skipped_invalid: int = 0
    skipped_by_timeline: int = 0
    reason: Optional[str] = None


@dataclass
class DerivedLayer:
    """Everything derived from one file for one set of inputs."""
    name: str
    roles: HeaderRoles
    points: PointDerivation
    regions: RegionDerivation
    timeline: Any = None
    parse_errors: List[str] = field(default_factory=list)
