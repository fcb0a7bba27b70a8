"""Trial and token gate deciding whether a project may accept another entry."""

import logging

from config import TRIAL_LOG_LIMIT
from .database import DatabaseManager
from .models import EntitlementState

logger = logging.getLogger(__name__)


class EntitlementGate:
    """Trial/token bookkeeping persisted in the database.

    The first project created without tokens is the trial project and may
    hold ``trial_limit`` entries. A token unlocks one project for good;
    while any token is held, every project accepts entries.
    """

    def __init__(self, db: DatabaseManager, trial_limit: int = TRIAL_LOG_LIMIT) -> None:
        self.db = db
        self.trial_limit = trial_limit

    @property
    def state(self) -> EntitlementState:
        return self.db.get_entitlement_state()

    def register_project(self, project_id: int) -> bool:
        """Attach a newly created project to the trial or spend a token on it.

        Returns:
            True if the project can accept entries.
        """
        state = self.state
        if state.trial_project_id is None and state.tokens == 0 and not state.trial_completed:
            state.trial_project_id = project_id
            logger.info("Project %d is the trial project", project_id)
        elif state.tokens > 0:
            state.tokens -= 1
            state.unlocked_projects.add(project_id)
            logger.info("Project %d unlocked with a token", project_id)
        else:
            return False
        self.db.save_entitlement_state(state)
        return True

    def may_create_project(self) -> bool:
        state = self.state
        return state.tokens > 0 or (not state.trial_completed and state.trial_project_id is None)

    def may_add_entry(self, project_id: int) -> bool:
        state = self.state
        if project_id in state.unlocked_projects or state.tokens > 0:
            return True
        return (
            not state.trial_completed
            and state.trial_project_id == project_id
            and state.trial_logs_used < self.trial_limit
        )

    def record_entry(self, project_id: int) -> None:
        """Count a committed entry against the trial when it applies."""
        state = self.state
        if project_id in state.unlocked_projects or state.trial_project_id != project_id:
            return
        state.trial_logs_used += 1
        state.trial_completed = state.trial_logs_used >= self.trial_limit
        self.db.save_entitlement_state(state)

    def remaining_trial_entries(self) -> int:
        state = self.state
        if state.trial_completed:
            return 0
        return max(0, self.trial_limit - state.trial_logs_used)

    def add_tokens(self, count: int) -> int:
        """Add purchased tokens, returning the new balance."""
        state = self.state
        state.tokens += count
        self.db.save_entitlement_state(state)
        return state.tokens

    def unlock_project(self, project_id: int) -> bool:
        """Spend a token to lift the limit on a project.

        Returns:
            False if no token is available.
        """
        state = self.state
        if project_id in state.unlocked_projects:
            return True
        if state.tokens <= 0:
            return False
        state.tokens -= 1
        state.unlocked_projects.add(project_id)
        self.db.save_entitlement_state(state)
        return True

    def release_project(self, project_id: int) -> bool:
        """Reset the trial when the trial project is deleted."""
        state = self.state
        if state.trial_project_id != project_id:
            return False
        state.trial_project_id = None
        state.trial_logs_used = 0
        state.trial_completed = False
        state.unlocked_projects.discard(project_id)
        self.db.save_entitlement_state(state)
        return True
