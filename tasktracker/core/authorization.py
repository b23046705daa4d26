"""
Authorization decisions for task and user actions.

Every decision is a pure function of an ``Actor`` (the caller's id and
current role), an ``Action`` and a snapshot of the target. Services load
the snapshot from the stores, call ``enforce`` and only then write.

Back-references that no longer resolve (a deleted creator, assignee or
manager) are represented as ``None`` and simply grant nothing.
"""
import enum
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from tasktracker.core.errors import Forbidden, InvalidRoleTransition
from tasktracker.models.user import User, UserRole

# Role ladder: a role passes every gate of the roles ranked below it
ROLE_RANK: Dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.MANAGER: 1,
    UserRole.ADMIN: 2,
}


def has_role(role: UserRole, minimum: UserRole) -> bool:
    return ROLE_RANK[role] >= ROLE_RANK[minimum]


class Action(str, enum.Enum):
    CREATE_TASK = "create_task"
    READ_TASK = "read_task"
    UPDATE_TASK = "update_task"
    DELETE_TASK = "delete_task"
    ASSIGN_TASK = "assign_task"
    CREATE_USER = "create_user"
    UPDATE_USER_ROLE = "update_user_role"
    ASSIGN_USER_TO_MANAGER = "assign_user_to_manager"
    UNASSIGN_USER_FROM_MANAGER = "unassign_user_from_manager"
    DELETE_USER = "delete_user"
    LIST_ALL_USERS = "list_all_users"
    LIST_MANAGERS = "list_managers"
    GET_PROFILE = "get_profile"
    LIST_TEAM = "list_team"
    LIST_USER_ASSIGNED_TASKS = "list_user_assigned_tasks"


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    # Denied because an admin action would target the caller's own account
    SELF_ACTION = "self_action"


@dataclass(frozen=True)
class Actor:
    id: int
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=user.role)


@dataclass(frozen=True)
class PrincipalRef:
    """Snapshot of a principal referenced by a task or targeted by an action."""

    id: int
    role: UserRole
    manager_id: Optional[int] = None

    @classmethod
    def from_user(cls, user: Optional[User]) -> Optional["PrincipalRef"]:
        if user is None:
            return None
        return cls(id=user.id, role=user.role, manager_id=user.manager_id)


@dataclass(frozen=True)
class TaskTarget:
    created_by: int
    assigned_to: Optional[int] = None
    creator: Optional[PrincipalRef] = None
    assignee: Optional[PrincipalRef] = None


@dataclass(frozen=True)
class AssignmentTarget:
    task: TaskTarget
    principal: PrincipalRef


Target = Union[TaskTarget, AssignmentTarget, PrincipalRef, None]


def _manages(actor: Actor, principal: Optional[PrincipalRef]) -> bool:
    return principal is not None and principal.manager_id == actor.id


def _is_admin(actor: Actor) -> bool:
    return actor.role == UserRole.ADMIN


def _read_task(actor: Actor, task: TaskTarget) -> bool:
    if _is_admin(actor):
        return True
    if actor.id in (task.created_by, task.assigned_to):
        return True
    if actor.role == UserRole.MANAGER:
        return _manages(actor, task.creator) or _manages(actor, task.assignee)
    return False


def _update_task(actor: Actor, task: TaskTarget) -> bool:
    if _is_admin(actor) or task.created_by == actor.id:
        return True
    if actor.role == UserRole.MANAGER:
        return _manages(actor, task.creator) or _manages(actor, task.assignee)
    return False


def _delete_task(actor: Actor, task: TaskTarget) -> bool:
    # Deletion follows creation: assignee-only team membership is not enough
    if _is_admin(actor) or task.created_by == actor.id:
        return True
    if actor.role == UserRole.MANAGER:
        return _manages(actor, task.creator)
    return False


def _assign_task(actor: Actor, target: AssignmentTarget) -> bool:
    if _is_admin(actor):
        return True
    if actor.role == UserRole.MANAGER:
        return _manages(actor, target.principal)
    return target.principal.id == actor.id


def _get_profile(actor: Actor, target: PrincipalRef) -> bool:
    if _is_admin(actor) or target.id == actor.id:
        return True
    if actor.role == UserRole.MANAGER:
        return _manages(actor, target)
    return False


def _admin_only(actor: Actor, target: Target) -> bool:
    return _is_admin(actor)


def _admin_not_self(actor: Actor, target: PrincipalRef) -> Decision:
    if not _is_admin(actor):
        return Decision.DENY
    if target.id == actor.id:
        return Decision.SELF_ACTION
    return Decision.ALLOW


def _manager_or_admin(actor: Actor, target: Target) -> bool:
    return has_role(actor.role, UserRole.MANAGER)


def _any_principal(actor: Actor, target: Target) -> bool:
    return True


RULES: Dict[Action, Callable[[Actor, Target], Union[bool, Decision]]] = {
    Action.CREATE_TASK: _any_principal,
    Action.READ_TASK: _read_task,
    Action.UPDATE_TASK: _update_task,
    Action.DELETE_TASK: _delete_task,
    Action.ASSIGN_TASK: _assign_task,
    Action.CREATE_USER: _admin_only,
    Action.UPDATE_USER_ROLE: _admin_not_self,
    Action.ASSIGN_USER_TO_MANAGER: _admin_only,
    Action.UNASSIGN_USER_FROM_MANAGER: _admin_only,
    Action.DELETE_USER: _admin_not_self,
    Action.LIST_ALL_USERS: _admin_only,
    Action.LIST_MANAGERS: _admin_only,
    Action.GET_PROFILE: _get_profile,
    Action.LIST_TEAM: _manager_or_admin,
    Action.LIST_USER_ASSIGNED_TASKS: _manager_or_admin,
}

DENIAL_MESSAGES = {
    Action.READ_TASK: "You do not have permission to access this task",
    Action.UPDATE_TASK: "You do not have permission to update this task",
    Action.DELETE_TASK: "You do not have permission to delete this task",
    Action.GET_PROFILE: "You can only view your team members profiles",
}

SELF_ACTION_MESSAGES = {
    Action.UPDATE_USER_ROLE: "You cannot change your own role",
    Action.DELETE_USER: "You cannot delete your own account",
}


def decide(actor: Actor, action: Action, target: Target = None) -> Decision:
    outcome = RULES[action](actor, target)
    if isinstance(outcome, Decision):
        return outcome
    return Decision.ALLOW if outcome else Decision.DENY


def is_allowed(actor: Actor, action: Action, target: Target = None) -> bool:
    return decide(actor, action, target) is Decision.ALLOW


def _assign_denial(actor: Actor) -> str:
    if actor.role == UserRole.MANAGER:
        return "You can only assign tasks to your team members"
    return "You can only assign tasks to yourself"


def enforce(actor: Actor, action: Action, target: Target = None) -> None:
    """Raise the error matching a denied decision; return quietly otherwise."""
    decision = decide(actor, action, target)
    if decision is Decision.ALLOW:
        return
    if decision is Decision.SELF_ACTION:
        raise InvalidRoleTransition(SELF_ACTION_MESSAGES.get(action))
    if action == Action.ASSIGN_TASK:
        raise Forbidden(_assign_denial(actor))
    raise Forbidden(DENIAL_MESSAGES.get(action))
