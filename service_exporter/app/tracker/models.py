"""
Tracker payload models.

Only the fields the exporter reads are declared; everything else in the
Jira payloads is ignored.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _TrackerModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NamedRef(_TrackerModel):
    name: str = ""


class StatusCategory(_TrackerModel):
    name: str


class Status(_TrackerModel):
    """A workflow status and the category it belongs to."""
    name: str
    status_category: StatusCategory = Field(alias="statusCategory")

    @property
    def category_name(self) -> str:
        return self.status_category.name


class ProjectRef(_TrackerModel):
    key: str


class Assignee(_TrackerModel):
    email_address: Optional[str] = Field(default=None, alias="emailAddress")
    display_name: Optional[str] = Field(default=None, alias="displayName")

    @property
    def identifier(self) -> str:
        # Jira Cloud hides e-mail addresses unless the user allows it
        return self.email_address or self.display_name or ""


class ChangeItem(_TrackerModel):
    field: str
    # Not typed as str: a non-string previous status must surface as an error, not be coerced
    from_string: Any = Field(default=None, alias="fromString")


class ChangelogEntry(_TrackerModel):
    created: str
    items: List[ChangeItem] = Field(default_factory=list)

    def status_changes(self) -> List[ChangeItem]:
        """Items of this entry that record a status transition."""
        return [item for item in self.items if item.field == "status"]


class Changelog(_TrackerModel):
    histories: List[ChangelogEntry] = Field(default_factory=list)


class IssueFields(_TrackerModel):
    created: str
    status: Status
    project: ProjectRef
    priority: Optional[NamedRef] = None
    assignee: Optional[Assignee] = None
    issue_type: Optional[NamedRef] = Field(default=None, alias="issuetype")


class Issue(_TrackerModel):
    """An issue with its change history, newest history entry first."""
    key: str
    issue_fields: IssueFields = Field(alias="fields")
    changelog: Changelog = Field(default_factory=Changelog)

    @property
    def project_key(self) -> str:
        return self.issue_fields.project.key

    @property
    def priority_name(self) -> str:
        return self.issue_fields.priority.name if self.issue_fields.priority else ""

    @property
    def assignee_id(self) -> str:
        return self.issue_fields.assignee.identifier if self.issue_fields.assignee else ""

    @property
    def issue_type_name(self) -> str:
        return self.issue_fields.issue_type.name if self.issue_fields.issue_type else ""

    @property
    def status_name(self) -> str:
        return self.issue_fields.status.name

    @property
    def status_category_name(self) -> str:
        return self.issue_fields.status.category_name

    @property
    def created(self) -> str:
        return self.issue_fields.created

    @property
    def histories(self) -> List[ChangelogEntry]:
        return self.changelog.histories


class SearchPage(_TrackerModel):
    """One page of issue search results."""
    issues: List[Issue] = Field(default_factory=list)


class Myself(_TrackerModel):
    account_id: Optional[str] = Field(default=None, alias="accountId")
    email_address: Optional[str] = Field(default=None, alias="emailAddress")
    active: bool = True
