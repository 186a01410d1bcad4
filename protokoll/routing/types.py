"""
Routing Types

Configuration models and per-call records shared by the classifier
and the router. Structure and filename options follow the
year/month/day directory conventions used for transcript output.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Enums
# ============================================================================

class SignalType(str, Enum):
    """Kinds of textual evidence a route can collect"""
    EXPLICIT_PHRASE = "explicit_phrase"
    ASSOCIATED_PERSON = "associated_person"
    ASSOCIATED_COMPANY = "associated_company"
    TOPIC = "topic"
    CONTEXT_TYPE = "context_type"


class ContextType(str, Enum):
    """Whether a note reads as work, personal, or both"""
    WORK = "work"
    PERSONAL = "personal"
    MIXED = "mixed"


class FilesystemStructure(str, Enum):
    """Directory nesting below a destination path"""
    NONE = "none"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


class FilenameOption(str, Enum):
    """Components that make up an output filename"""
    DATE = "date"
    TIME = "time"
    SUBJECT = "subject"


class ConflictResolution(str, Enum):
    """What to do when several projects match with high confidence"""
    ASK = "ask"
    PRIMARY = "primary"
    ALL = "all"


# ============================================================================
# Configuration models
# ============================================================================

class RouteDestination(BaseModel):
    """Where and how a routed transcript is written"""
    path: str = Field(..., description="Base directory, may start with ~")
    structure: FilesystemStructure = Field(default=FilesystemStructure.MONTH)
    filename_options: List[FilenameOption] = Field(
        default_factory=lambda: [FilenameOption.DATE, FilenameOption.TIME, FilenameOption.SUBJECT]
    )
    create_directories: bool = False


class ProjectClassification(BaseModel):
    """Signals that tie a transcript to a project"""
    context_type: ContextType
    associated_people: List[str] = Field(default_factory=list, description="Person IDs")
    associated_companies: List[str] = Field(default_factory=list, description="Company IDs")
    topics: List[str] = Field(default_factory=list)
    explicit_phrases: List[str] = Field(default_factory=list, description="High-confidence trigger phrases")

    @field_validator(
        "associated_people", "associated_companies", "topics", "explicit_phrases",
        mode="before",
    )
    @classmethod
    def none_is_empty(cls, value):
        return [] if value is None else value


class ProjectRoute(BaseModel):
    """A candidate destination with its matching rules"""
    project_id: str
    destination: RouteDestination
    classification: ProjectClassification
    priority: Optional[int] = None
    active: bool = True
    auto_tags: List[str] = Field(default_factory=list)

    @field_validator("auto_tags", mode="before")
    @classmethod
    def none_is_empty(cls, value):
        return [] if value is None else value


class RoutingConfig(BaseModel):
    """Routing policy for one routing session"""
    default: RouteDestination
    projects: List[ProjectRoute] = Field(default_factory=list)
    conflict_resolution: ConflictResolution = Field(default=ConflictResolution.PRIMARY)
    priority_order: Optional[List[ContextType]] = None


# ============================================================================
# Per-call records
# ============================================================================

@dataclass(frozen=True)
class ClassificationSignal:
    """One piece of evidence that a transcript belongs to a route"""
    type: SignalType
    value: str
    weight: float  # 0-1, how much this signal contributes


@dataclass
class ClassificationResult:
    """Score for a single route"""
    project_id: str
    confidence: float  # 0-0.99
    signals: List[ClassificationSignal] = field(default_factory=list)
    reasoning: str = ""


@dataclass
class RouteDecision:
    """Chosen destination for a transcript. project_id None means default routing."""
    project_id: Optional[str]
    destination: RouteDestination
    confidence: float
    signals: List[ClassificationSignal] = field(default_factory=list)
    reasoning: str = ""
    auto_tags: Optional[List[str]] = None
    alternate_matches: Optional[List[ClassificationResult]] = None

    @property
    def is_default(self) -> bool:
        return self.project_id is None


@dataclass
class RoutingContext:
    """Classification input for one transcript"""
    transcript_text: str
    audio_date: datetime
    source_file: str
    hash: Optional[str] = None
    # Hints from earlier processing; None means scan the text instead
    detected_people: Optional[List[str]] = None
    detected_companies: Optional[List[str]] = None
