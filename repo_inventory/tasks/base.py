"""Base Celery task with lazily created, per-worker Mongo and GitHub handles."""

import logging

from celery import Task

from repo_inventory.core.tracing import TracingContext

logger = logging.getLogger(__name__)


class PipelineTask(Task):
    abstract = True

    _db = None
    _github = None

    @property
    def db(self):
        if self._db is None:
            from repo_inventory.database.mongo import get_database

            self._db = get_database()
        return self._db

    @property
    def github(self):
        if self._github is None:
            from repo_inventory.services.github.github_client import get_github_client

            self._github = get_github_client()
        return self._github

    def before_start(self, task_id, args, kwargs):
        TracingContext.clear()
        TracingContext.set(correlation_id=task_id, task_name=self.name)

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(f"Task {self.name}[{task_id}] failed: {exc}")

    def after_return(self, status, retval, task_id, args, kwargs, einfo):
        TracingContext.clear()
