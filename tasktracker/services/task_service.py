import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from tasktracker.core.authorization import (
    Action,
    Actor,
    AssignmentTarget,
    PrincipalRef,
    TaskTarget,
    enforce,
)
from tasktracker.core.errors import NotFound
from tasktracker.core.visibility import task_visibility_predicate
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.schemas.task import TaskCreate, TaskUpdate
from tasktracker.services.notifications import NotificationKind, Notifier
from tasktracker.stores.credentials import CredentialStore
from tasktracker.stores.tasks import TaskQuery, TaskStore

logger = logging.getLogger("tasktracker.services.tasks")


class TaskService:
    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.tasks = TaskStore(db)
        self.users = CredentialStore(db)
        self.notifier = notifier

    def _get_or_404(self, task_id: int) -> Task:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    def _target(self, task: Task) -> TaskTarget:
        """Snapshot of the task and the principals it references.

        A creator or assignee that has since been deleted resolves to None.
        """
        return TaskTarget(
            created_by=task.created_by,
            assigned_to=task.assigned_to,
            creator=PrincipalRef.from_user(self.users.get(task.created_by)),
            assignee=PrincipalRef.from_user(self.users.get(task.assigned_to)),
        )

    def create_task(self, current_user: User, task_data: TaskCreate) -> Task:
        enforce(Actor.from_user(current_user), Action.CREATE_TASK)
        task = self.tasks.create(
            title=task_data.title,
            description=task_data.description or None,
            due_date=task_data.due_date,
            priority=task_data.priority,
            status=task_data.status,
            created_by=current_user.id,
            assigned_to=None,
        )
        logger.info("Task %s created by user %s", task.id, current_user.id)
        return task

    def get_task(self, current_user: User, task_id: int) -> Task:
        task = self._get_or_404(task_id)
        enforce(Actor.from_user(current_user), Action.READ_TASK, self._target(task))
        return task

    def list_tasks(self, current_user: User, params: TaskQuery) -> Tuple[List[Task], int]:
        predicate = task_visibility_predicate(Actor.from_user(current_user))
        return self.tasks.query(params, predicate)

    def update_task(self, current_user: User, task_id: int, task_data: TaskUpdate) -> Task:
        task = self._get_or_404(task_id)
        enforce(Actor.from_user(current_user), Action.UPDATE_TASK, self._target(task))

        for field, value in task_data.changes().items():
            setattr(task, field, value)
        return self.tasks.save(task)

    def delete_task(self, current_user: User, task_id: int) -> None:
        task = self._get_or_404(task_id)
        enforce(Actor.from_user(current_user), Action.DELETE_TASK, self._target(task))
        self.tasks.delete(task)
        logger.info("Task %s deleted by user %s", task_id, current_user.id)

    def assign_task(self, current_user: User, task_id: int, user_id: int) -> Task:
        task = self._get_or_404(task_id)
        assignee = self.users.get(user_id)
        if assignee is None:
            raise NotFound("User not found")

        target = AssignmentTarget(task=self._target(task), principal=PrincipalRef.from_user(assignee))
        enforce(Actor.from_user(current_user), Action.ASSIGN_TASK, target)

        task.assigned_to = assignee.id
        task = self.tasks.save(task)
        logger.info("Task %s assigned to user %s by user %s", task.id, assignee.id, current_user.id)

        if self.notifier is not None:
            self.notifier.send(
                NotificationKind.TASK_ASSIGNED,
                {
                    "email": assignee.email,
                    "task_title": task.title,
                    "assigner": current_user.username,
                },
            )
        return task

    def list_assigned_to_me(self, current_user: User) -> List[Task]:
        return self.tasks.list_assigned_to(current_user.id)

    def list_assigned_to_user(self, current_user: User, user_id: int) -> List[Task]:
        actor = Actor.from_user(current_user)
        enforce(actor, Action.LIST_USER_ASSIGNED_TASKS)
        if self.users.get(user_id) is None:
            raise NotFound("User not found")
        return self.tasks.list_assigned_to(user_id, task_visibility_predicate(actor))
