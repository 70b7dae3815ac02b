"""
Authorization Policy - who may do what to which resource.

One pure decision function, `can_perform(actor, action, resource)`, replaces
the ownership checks that would otherwise be repeated in every route. It does
no I/O and never raises: the calling service fetches the resource, builds a
resource view with the owner fields, asks the policy, and translates a DENY
into an error.

Rules, first match decides:
    0. no actor                                  -> DENY not_authenticated
    1. identity-independent business rules       -> DENY invalid_state
       (deleting a project with an accepted application)
    2. admin                                     -> ALLOW
    3. per-resource ownership / public-read rules
    4. everything else                           -> DENY not_owner
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Union

from app.schemas.schemas import ApplicationStatus, UserRole


class Action(str, Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"
    transition_status = "transition-status"
    withdraw = "withdraw"
    submit_work = "submit-work"


class DenyReason(str, Enum):
    not_authenticated = "not_authenticated"
    wrong_role = "wrong_role"
    not_owner = "not_owner"
    invalid_state = "invalid_state"


@dataclass(frozen=True)
class Actor:
    subject_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: DenyReason, message: str) -> Decision:
    return Decision(False, reason, message)


# ============================================================
# RESOURCE VIEWS
# Only the fields the rules look at. Ids are plain strings.
# ============================================================

@dataclass(frozen=True)
class UserResource:
    user_id: Optional[str] = None


@dataclass(frozen=True)
class ProjectResource:
    company_id: Optional[str] = None
    has_accepted_applications: bool = False


@dataclass(frozen=True)
class ApplicationResource:
    """
    applicant_id / company_id: the two sides of the transaction.
    company_id is the owner of the referenced project.
    target_status: only set for transition-status.
    """
    applicant_id: Optional[str] = None
    company_id: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    target_status: Optional[ApplicationStatus] = None


@dataclass(frozen=True)
class CommentResource:
    author_id: Optional[str] = None


@dataclass(frozen=True)
class NotificationResource:
    recipient_id: Optional[str] = None


Resource = Union[
    UserResource, ProjectResource, ApplicationResource, CommentResource, NotificationResource
]


# ============================================================
# PER-RESOURCE RULES (non-admin actors only)
# ============================================================

def _user_rules(actor: Actor, action: Action, user: UserResource) -> Decision:
    if action == Action.read:
        return ALLOW
    if action == Action.update:
        if actor.subject_id == user.user_id:
            return ALLOW
        return deny(DenyReason.not_owner, "Not authorized to update this user")
    if action in (Action.create, Action.delete):
        return deny(DenyReason.wrong_role, "Only admins can manage user accounts")
    return deny(DenyReason.not_owner, "Not authorized to access this user")


def _project_rules(actor: Actor, action: Action, project: ProjectResource) -> Decision:
    if action == Action.read:
        return ALLOW
    if action == Action.create:
        if actor.role == UserRole.company:
            return ALLOW
        return deny(DenyReason.wrong_role, "Only companies can create projects")
    if action in (Action.update, Action.delete):
        if actor.subject_id == project.company_id:
            return ALLOW
        return deny(DenyReason.not_owner, f"Not authorized to {action.value} this project")
    return deny(DenyReason.not_owner, "Not authorized to access this project")


def _transition_rules(actor: Actor, application: ApplicationResource) -> Decision:
    target = application.target_status
    if target in (ApplicationStatus.accepted, ApplicationStatus.rejected):
        if actor.subject_id == application.company_id:
            return ALLOW
        return deny(DenyReason.not_owner, "Only the project owner can accept or reject applications")
    if target == ApplicationStatus.withdrawn:
        if actor.subject_id == application.applicant_id:
            return _withdraw_state(application)
        return deny(DenyReason.not_owner, "Only the applicant can withdraw an application")
    if actor.subject_id in (application.company_id, application.applicant_id):
        return deny(DenyReason.invalid_state, f"Cannot set application status to {target}")
    return deny(DenyReason.not_owner, "Not authorized to update this application")


def _withdraw_state(application: ApplicationResource) -> Decision:
    if application.status in (ApplicationStatus.pending, ApplicationStatus.accepted):
        return ALLOW
    return deny(DenyReason.invalid_state, f"Cannot withdraw an application that is {application.status}")


def _application_rules(actor: Actor, action: Action, application: ApplicationResource) -> Decision:
    is_applicant = application.applicant_id is not None and actor.subject_id == application.applicant_id
    is_owner = application.company_id is not None and actor.subject_id == application.company_id

    if action == Action.create:
        if actor.role == UserRole.junior:
            return ALLOW
        return deny(DenyReason.wrong_role, "Only junior developers can apply to projects")
    if action == Action.read:
        # both sides of the transaction can view it
        if is_applicant or is_owner:
            return ALLOW
        return deny(DenyReason.not_owner, "Not authorized to view this application")
    if action == Action.update:
        if is_owner:
            return ALLOW
        return deny(DenyReason.not_owner, "Not authorized to update this application")
    if action == Action.transition_status:
        return _transition_rules(actor, application)
    if action == Action.withdraw:
        if not is_applicant:
            return deny(DenyReason.not_owner, "Only the applicant can withdraw an application")
        return _withdraw_state(application)
    if action == Action.submit_work:
        if not is_applicant:
            return deny(DenyReason.not_owner, "Not authorized to submit work for this application")
        if application.status != ApplicationStatus.accepted:
            return deny(DenyReason.invalid_state, "Application not accepted yet")
        return ALLOW
    if action == Action.delete:
        return deny(DenyReason.wrong_role, "Only admins can delete applications")
    return deny(DenyReason.not_owner, "Not authorized to access this application")


def _comment_rules(actor: Actor, action: Action, comment: CommentResource) -> Decision:
    if action in (Action.read, Action.create):
        return ALLOW
    if action in (Action.update, Action.delete):
        if actor.subject_id == comment.author_id:
            return ALLOW
        return deny(DenyReason.not_owner, f"Not authorized to {action.value} this comment")
    return deny(DenyReason.not_owner, "Not authorized to access this comment")


def _notification_rules(actor: Actor, action: Action, notification: NotificationResource) -> Decision:
    if action == Action.create:
        return deny(DenyReason.wrong_role, "Notifications are created by the system")
    if action in (Action.read, Action.update, Action.delete):
        if actor.subject_id == notification.recipient_id:
            return ALLOW
        return deny(DenyReason.not_owner, "Notification does not belong to the user")
    return deny(DenyReason.not_owner, "Not authorized to access this notification")


_RULES: Dict[type, Callable[[Actor, Action, object], Decision]] = {
    UserResource: _user_rules,
    ProjectResource: _project_rules,
    ApplicationResource: _application_rules,
    CommentResource: _comment_rules,
    NotificationResource: _notification_rules,
}


def _business_rule(action: Action, resource: Resource) -> Optional[Decision]:
    """Rules that hold regardless of who is asking."""
    if (
        isinstance(resource, ProjectResource)
        and action == Action.delete
        and resource.has_accepted_applications
    ):
        return deny(DenyReason.invalid_state, "Cannot delete project with accepted applications")
    return None


def can_perform(actor: Optional[Actor], action: Action, resource: Resource) -> Decision:
    """
    Decide whether `actor` may perform `action` on `resource`.

    Returns a Decision; a DENY always carries a reason code. Never raises.
    """
    if actor is None:
        return deny(DenyReason.not_authenticated, "Authentication required")

    blocked = _business_rule(action, resource)
    if blocked is not None:
        return blocked

    if actor.is_admin:
        return ALLOW

    rules = _RULES.get(type(resource))
    if rules is None:
        return deny(DenyReason.not_owner, "Not authorized")
    return rules(actor, Action(action), resource)
