"""
Context Store

Read-only knowledge about entities that show up in transcripts:
people, companies and projects. Routing consumes it through the
EntityLookup interface; ContextStore is the in-memory implementation
loaded from a JSON document.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..routing.types import FilenameOption, FilesystemStructure, ProjectClassification

logger = logging.getLogger("protokoll.common.context")


class Person(BaseModel):
    """Named individual the user mentions"""
    id: str
    name: str
    sounds_like: List[str] = Field(default_factory=list, description="Common mishearings of the name")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    context: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("sounds_like", mode="before")
    @classmethod
    def none_is_empty(cls, value):
        return [] if value is None else value


class Company(BaseModel):
    """Organization referenced in notes"""
    id: str
    name: str
    full_name: Optional[str] = None
    industry: Optional[str] = None
    sounds_like: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("sounds_like", mode="before")
    @classmethod
    def none_is_empty(cls, value):
        return [] if value is None else value


class ProjectRouting(BaseModel):
    """Output settings of a project. No destination means the global default."""
    destination: Optional[str] = None
    structure: FilesystemStructure = Field(default=FilesystemStructure.MONTH)
    filename_options: List[FilenameOption] = Field(
        default_factory=lambda: [FilenameOption.DATE, FilenameOption.TIME, FilenameOption.SUBJECT]
    )
    auto_tags: List[str] = Field(default_factory=list)


class Project(BaseModel):
    """Work or personal context that transcripts are routed to"""
    id: str
    name: str
    description: Optional[str] = None
    classification: ProjectClassification
    routing: ProjectRouting = Field(default_factory=ProjectRouting)
    sounds_like: List[str] = Field(default_factory=list)
    active: bool = True


class EntityLookup(ABC):
    """Entity access needed by the classifier"""

    @abstractmethod
    def get_person(self, person_id: str) -> Optional[Person]:
        raise NotImplementedError

    @abstractmethod
    def get_all_people(self) -> List[Person]:
        raise NotImplementedError

    @abstractmethod
    def get_company(self, company_id: str) -> Optional[Company]:
        raise NotImplementedError

    @abstractmethod
    def get_all_companies(self) -> List[Company]:
        raise NotImplementedError


class ContextStore(EntityLookup):
    """
    In-memory entity store.

    Entities are keyed by id; adding an entity with an existing id
    replaces it. Iteration order is insertion order.
    """

    def __init__(
        self,
        people: Optional[List[Person]] = None,
        companies: Optional[List[Company]] = None,
        projects: Optional[List[Project]] = None,
    ):
        self._people: Dict[str, Person] = {}
        self._companies: Dict[str, Company] = {}
        self._projects: Dict[str, Project] = {}

        for person in people or []:
            self.add_person(person)
        for company in companies or []:
            self.add_company(company)
        for project in projects or []:
            self.add_project(project)

    @classmethod
    def from_dict(cls, data: dict) -> "ContextStore":
        """
        Build a store from a plain dict.

        Args:
            data: Dict with optional "people", "companies" and "projects" lists

        Returns:
            Populated ContextStore

        Raises:
            pydantic.ValidationError: If an entity record is malformed
        """
        return cls(
            people=[Person.model_validate(p) for p in data.get("people") or []],
            companies=[Company.model_validate(c) for c in data.get("companies") or []],
            projects=[Project.model_validate(p) for p in data.get("projects") or []],
        )

    def add_person(self, person: Person) -> None:
        self._people[person.id] = person

    def add_company(self, company: Company) -> None:
        self._companies[company.id] = company

    def add_project(self, project: Project) -> None:
        self._projects[project.id] = project

    def get_person(self, person_id: str) -> Optional[Person]:
        return self._people.get(person_id)

    def get_all_people(self) -> List[Person]:
        return list(self._people.values())

    def get_company(self, company_id: str) -> Optional[Company]:
        return self._companies.get(company_id)

    def get_all_companies(self) -> List[Company]:
        return list(self._companies.values())

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def get_all_projects(self) -> List[Project]:
        return list(self._projects.values())

    def counts(self) -> Dict[str, int]:
        """Number of loaded entities per kind"""
        return {
            "people": len(self._people),
            "companies": len(self._companies),
            "projects": len(self._projects),
        }


def load_context(path: str) -> ContextStore:
    """
    Load a ContextStore from a JSON file.

    Args:
        path: Path to a JSON document with people/companies/projects lists

    Returns:
        Populated ContextStore

    Raises:
        FileNotFoundError: If the file does not exist
    """
    context_path = Path(path).expanduser()
    if not context_path.exists():
        raise FileNotFoundError(f"Context file not found: {path}")

    with open(context_path, encoding="utf-8") as f:
        data = json.load(f)

    store = ContextStore.from_dict(data)
    logger.info("Loaded context from %s: %s", context_path, store.counts())
    return store
