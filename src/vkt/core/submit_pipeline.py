"""Linear pipeline for submitting local files as a pull request.

The run moves through planned -> validated -> branch_ready -> uploading
-> committed -> pr_opened. Each step is a generator that yields progress
events and returns either the next SubmitState or a terminal outcome:

    (SubmitContext, SubmitState) -> SubmitState | SubmitAborted | SubmitFailed

A run ends with exactly one CompletionEvent carrying the SubmitOutcome.
Nothing uploaded is ever deleted again: on failure the branch is left as
it is and the outcome names the stage and what was already uploaded.
"""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass, replace
from functools import cache
from typing import Literal

from vkt.core.commit_composer import build_commit_meta, compose_pr_body, compose_pr_title
from vkt.core.config import UserConfig
from vkt.core.errors import BranchExists, ForgeError, RefNotFound, TargetConflict
from vkt.core.events import CompletionEvent, ProgressEvent
from vkt.core.path_planner import SubmitPlan, UploadItem, find_conflicts
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.retry import with_forge_retry
from vkt.gateway.forge.types import CommitMeta, PullRequestRef, UploadResult
from vkt.gateway.time.abc import Time

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data Types
# ---------------------------------------------------------------------------

SubmitStage = Literal["planned", "validated", "branch_ready", "uploading", "committed", "pr_opened"]

FailedStage = Literal["plan", "branch-create", "upload", "pr-create"]


@dataclass(frozen=True)
class SubmitContext:
    """Dependencies of one submit run."""

    forge: ForgeClient
    time: Time
    user: UserConfig
    pr_prefix: str
    retry_delays: list[float] | None = None


@dataclass(frozen=True)
class SubmitState:
    """Immutable state threaded through the submit pipeline."""

    plan: SubmitPlan
    stage: SubmitStage
    meta: CommitMeta | None
    uploaded: tuple[UploadResult, ...]
    commit_id: str | None
    pull_request: PullRequestRef | None


@dataclass(frozen=True)
class SubmitSuccess:
    """Pull request opened, or (with dry_run) the preview of what would be submitted.

    A dry-run preview has no commit id and no pull request. `conflicts`
    lists remote paths that already existed and were (or would be) overwritten.
    """

    branch: str
    commit_id: str | None
    pr_number: int | None
    pr_url: str | None
    items: tuple[UploadItem, ...]
    dry_run: bool
    conflicts: tuple[str, ...] = ()


@dataclass(frozen=True)
class SubmitAborted:
    """Stopped before any remote mutation."""

    reason: str
    conflicts: tuple[str, ...]


@dataclass(frozen=True)
class SubmitFailed:
    """Stopped at `stage`; remote state up to that point is left in place.

    `partial` holds the remote paths uploaded before the failure and
    `commit_id` the last acknowledged commit, for manual follow-up.
    """

    stage: FailedStage
    cause: str
    branch: str
    partial: tuple[str, ...]
    commit_id: str | None


SubmitOutcome = SubmitSuccess | SubmitAborted | SubmitFailed

SubmitEvents = Generator[ProgressEvent | CompletionEvent[SubmitOutcome]]

StepResult = Generator[ProgressEvent, None, SubmitState | SubmitAborted | SubmitFailed]

SubmitStep = Callable[[SubmitContext, SubmitState], StepResult]


def _uploaded_paths(state: SubmitState) -> tuple[str, ...]:
    return tuple(result.path for result in state.uploaded)


# ---------------------------------------------------------------------------
# Pipeline Steps
# ---------------------------------------------------------------------------


def validate_targets(ctx: SubmitContext, state: SubmitState) -> StepResult:
    """planned -> validated: check every remote path against the base branch.

    Conflicts without force abort the run. A dry run stops here with a
    preview whatever the conflicts are.
    """
    plan = state.plan
    yield ProgressEvent(f"Checking {len(plan.items)} remote path(s) on {plan.base_branch}...")

    try:
        conflicts = find_conflicts(
            ctx.forge,
            plan.items,
            ref=plan.base_branch,
            time=ctx.time,
            retry_delays=ctx.retry_delays,
        )
    except ForgeError as e:
        return SubmitFailed(
            stage="plan",
            cause=f"Conflict check failed: {e.message}",
            branch=plan.branch,
            partial=(),
            commit_id=None,
        )

    for path in conflicts:
        yield ProgressEvent(f"Already exists: {path}", style="warning")

    if plan.dry_run:
        return SubmitSuccess(
            branch=plan.branch,
            commit_id=None,
            pr_number=None,
            pr_url=None,
            items=plan.items,
            dry_run=True,
            conflicts=tuple(conflicts),
        )

    if conflicts and not plan.force:
        return SubmitAborted(reason=str(TargetConflict(conflicts)), conflicts=tuple(conflicts))

    if conflicts:
        yield ProgressEvent(f"Overwriting {len(conflicts)} existing file(s) (--force)", "warning")
    else:
        yield ProgressEvent("No conflicts", style="success")

    return replace(state, plan=replace(plan, conflicts=tuple(conflicts)), stage="validated")


def create_branch(ctx: SubmitContext, state: SubmitState) -> StepResult:
    """validated -> branch_ready: create the branch from the base branch.

    An existing branch is reused only under force.
    """
    plan = state.plan
    yield ProgressEvent(f"Creating branch {plan.branch} from {plan.base_branch}...")

    try:
        with_forge_retry(
            ctx.time,
            f"create branch {plan.branch}",
            lambda: ctx.forge.create_branch(plan.branch, from_ref=plan.base_branch),
            ctx.retry_delays,
        )
    except BranchExists as e:
        if not plan.force:
            return SubmitFailed(
                stage="branch-create",
                cause=f"{e.message} (use --force to reuse it, or --branch to pick another name)",
                branch=plan.branch,
                partial=(),
                commit_id=None,
            )
        yield ProgressEvent(f"Reusing existing branch {plan.branch} (--force)", style="warning")
        return replace(state, stage="branch_ready")
    except RefNotFound as e:
        return SubmitFailed(
            stage="branch-create",
            cause=(
                f"{e.message}. If the repository is empty, initialize it first "
                "(for example by adding a README in the web UI)"
            ),
            branch=plan.branch,
            partial=(),
            commit_id=None,
        )
    except ForgeError as e:
        return SubmitFailed(
            stage="branch-create",
            cause=e.message,
            branch=plan.branch,
            partial=(),
            commit_id=None,
        )

    yield ProgressEvent(f"Branch {plan.branch} created", style="success")
    return replace(state, stage="branch_ready")


def upload_files(ctx: SubmitContext, state: SubmitState) -> StepResult:
    """branch_ready -> uploading: upload items one by one in planner order.

    Each file is read just for its own upload call. The first failure stops
    the loop. So does an interrupt, including one raised at a progress
    yield; uploads already done stay on the branch either way.
    """
    plan = state.plan
    meta = build_commit_meta(
        plan.message,
        user=ctx.user,
        items=plan.items,
        timestamp=ctx.time.now(),
    )
    state = replace(state, stage="uploading", meta=meta)
    total = len(plan.items)

    for index, item in enumerate(plan.items, start=1):
        try:
            yield ProgressEvent(
                f"[{index}/{total}] Uploading {item.remote_path} ({item.size} bytes)"
            )
            content = item.read_content()
            result = with_forge_retry(
                ctx.time,
                f"upload {item.remote_path}",
                lambda item=item, content=content: ctx.forge.upload_file(
                    plan.branch, item.remote_path, content, meta
                ),
                ctx.retry_delays,
            )
        except ForgeError as e:
            return SubmitFailed(
                stage="upload",
                cause=f"{item.remote_path}: {e.message}",
                branch=plan.branch,
                partial=_uploaded_paths(state),
                commit_id=state.uploaded[-1].commit_id if state.uploaded else None,
            )
        except KeyboardInterrupt:
            logger.warning("Interrupted while uploading %s", item.remote_path)
            return SubmitFailed(
                stage="upload",
                cause="interrupted",
                branch=plan.branch,
                partial=_uploaded_paths(state),
                commit_id=state.uploaded[-1].commit_id if state.uploaded else None,
            )
        state = replace(state, uploaded=(*state.uploaded, result))

    return state


def mark_committed(ctx: SubmitContext, state: SubmitState) -> StepResult:
    """uploading -> committed: every planned upload has acknowledged a commit id.

    Providers commit once per file, so the last acknowledged id is the
    commit the branch points at.
    """
    plan = state.plan
    missing = [r.path for r in state.uploaded if not r.commit_id]
    if len(state.uploaded) != len(plan.items) or missing:
        return SubmitFailed(
            stage="upload",
            cause="Provider did not acknowledge a commit for every upload",
            branch=plan.branch,
            partial=_uploaded_paths(state),
            commit_id=None,
        )

    commit_id = state.uploaded[-1].commit_id
    yield ProgressEvent(f"Committed {len(state.uploaded)} file(s) ({commit_id[:12]})", "success")
    return replace(state, stage="committed", commit_id=commit_id)


def open_pull_request(ctx: SubmitContext, state: SubmitState) -> StepResult:
    """committed -> pr_opened: open the pull request against the base branch."""
    plan = state.plan
    assert state.meta is not None
    title = compose_pr_title(plan.message, ctx.pr_prefix)
    body = compose_pr_body(
        plan.message, local_path=plan.local_path, items=plan.items, meta=state.meta
    )

    yield ProgressEvent(f"Opening pull request {plan.branch} -> {plan.base_branch}...")
    try:
        pull_request = with_forge_retry(
            ctx.time,
            f"create pull request for {plan.branch}",
            lambda: ctx.forge.create_pull_request(
                plan.branch, base=plan.base_branch, title=title, body=body
            ),
            ctx.retry_delays,
        )
    except ForgeError as e:
        return SubmitFailed(
            stage="pr-create",
            cause=e.message,
            branch=plan.branch,
            partial=_uploaded_paths(state),
            commit_id=state.commit_id,
        )

    yield ProgressEvent(f"Pull request #{pull_request.number} opened", style="success")
    return replace(state, stage="pr_opened", pull_request=pull_request)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


@cache
def _submit_pipeline() -> tuple[SubmitStep, ...]:
    return (
        validate_targets,
        create_branch,
        upload_files,
        mark_committed,
        open_pull_request,
    )


def make_initial_state(plan: SubmitPlan) -> SubmitState:
    return SubmitState(
        plan=plan,
        stage="planned",
        meta=None,
        uploaded=(),
        commit_id=None,
        pull_request=None,
    )


def execute_submit(ctx: SubmitContext, plan: SubmitPlan) -> SubmitEvents:
    """Run the submit pipeline for a plan.

    Yields:
        ProgressEvent for each step, then one CompletionEvent with the
        SubmitOutcome
    """
    state = make_initial_state(plan)
    for step in _submit_pipeline():
        result = yield from step(ctx, state)
        if isinstance(result, SubmitAborted | SubmitFailed | SubmitSuccess):
            logger.debug("Submit of %s ended at %s: %s", plan.branch, state.stage, result)
            yield CompletionEvent(result)
            return
        state = result

    assert state.pull_request is not None
    assert state.commit_id is not None
    yield CompletionEvent(
        SubmitSuccess(
            branch=plan.branch,
            commit_id=state.commit_id,
            pr_number=state.pull_request.number,
            pr_url=state.pull_request.url,
            items=plan.items,
            dry_run=False,
            conflicts=state.plan.conflicts,
        )
    )
