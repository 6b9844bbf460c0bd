"""Submit command - upload local files to a new branch and open a pull request."""

from pathlib import Path

import click

from vkt.cli.ensure import Ensure
from vkt.cli.output import user_output
from vkt.cli.reporter import render_events, render_outcome
from vkt.core.context import VktContext
from vkt.core.errors import ValidationFailed
from vkt.core.naming import resolve_branch_name
from vkt.core.path_planner import plan_submit
from vkt.core.submit_pipeline import SubmitContext, SubmitFailed, execute_submit


@click.command("submit")
@click.argument(
    "local_path",
    metavar="LOCAL_PATH",
    type=click.Path(path_type=Path),
)
@click.option("--target", "target_dir", required=True, help="Remote directory to upload into")
@click.option("--msg", "message", required=True, help="Commit message (also the PR title)")
@click.option("--branch", default=None, help="Branch name (default: derived from --msg)")
@click.option("--base", default=None, help="Base branch (default: repo.default_branch)")
@click.option(
    "--force", is_flag=True, help="Overwrite existing files and reuse an existing branch"
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be submitted without changing anything"
)
@click.pass_obj
def submit_cmd(
    ctx: VktContext,
    local_path: Path,
    target_dir: str,
    message: str,
    branch: str | None,
    base: str | None,
    force: bool,
    dry_run: bool,
) -> None:
    """Submit LOCAL_PATH (a file or directory) as a pull request.

    Creates a branch, uploads every file in order and opens a pull
    request. Nothing already uploaded is rolled back if a later step
    fails; the error names the branch and the uploaded files.

    Examples:

    \b
      vkt submit ./debug.sh --target scripts/tools --msg "feat: add debugging utility"
      vkt submit ./tools --target scripts --msg "Add tools" --dry-run
    """
    config, forge = Ensure.configured(ctx)
    resolved_local = local_path if local_path.is_absolute() else ctx.cwd / local_path
    branch_name = resolve_branch_name(branch, message, ctx.time.now())

    try:
        plan = plan_submit(
            local_path=resolved_local,
            target_dir=target_dir,
            branch=branch_name,
            base_branch=base if base is not None else config.repo.default_branch,
            message=message,
            dry_run=dry_run,
            force=force,
        )
    except ValidationFailed as e:
        outcome = SubmitFailed(
            stage="plan", cause=e.message, branch=branch_name, partial=(), commit_id=None
        )
        raise SystemExit(render_outcome(outcome)) from e

    mode = " (dry run)" if dry_run else ""
    user_output(
        click.style(f"Submitting {len(plan.items)} file(s) to {plan.target_dir or '/'}", bold=True)
        + mode
    )
    submit_ctx = SubmitContext(
        forge=forge,
        time=ctx.time,
        user=config.user,
        pr_prefix=config.template.pr_prefix,
    )
    outcome = render_events(execute_submit(submit_ctx, plan))
    exit_code = render_outcome(outcome)
    if exit_code != 0:
        raise SystemExit(exit_code)
