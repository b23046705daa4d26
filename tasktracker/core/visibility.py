"""Predicate form of the task read rule, compiled into list queries."""
from sqlalchemy import or_

from tasktracker.core.authorization import Actor
from tasktracker.models.task import Task
from tasktracker.models.user import UserRole
from tasktracker.stores.credentials import team_ids_subquery


def task_visibility_predicate(actor: Actor):
    """Return the SQL condition limiting tasks to those ``actor`` may read.

    Admins see everything (``None``). A manager sees tasks created by or
    assigned to themselves or any principal whose ``manager_id`` points at
    them; the team is resolved as a subquery of the same statement so a
    page and its total are computed against one snapshot. Everyone else
    sees the tasks they created or were assigned.
    """
    if actor.role == UserRole.ADMIN:
        return None

    if actor.role == UserRole.MANAGER:
        team = team_ids_subquery(actor.id)
        return or_(
            Task.created_by == actor.id,
            Task.assigned_to == actor.id,
            Task.created_by.in_(team),
            Task.assigned_to.in_(team),
        )

    return or_(Task.created_by == actor.id, Task.assigned_to == actor.id)
