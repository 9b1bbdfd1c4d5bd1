import click

from draftpress.application.cms.purge_drafts import purge_deleted_drafts
from draftpress.domain.exceptions import HistoryIntegrityError
from draftpress.engine import get_engine
from draftpress.utils.transaction import transactional


def register_commands(app):
    @app.cli.command("purge-drafts")
    @click.option("--retention-days", type=int, default=None, help="Override DRAFT_RETENTION_DAYS.")
    def purge_drafts_command(retention_days):
        """Hard-delete soft-deleted drafts past the retention window."""
        days = retention_days if retention_days is not None else app.config["DRAFT_RETENTION_DAYS"]
        result = purge_deleted_drafts(retention_days=days)
        click.echo(f"Purged {result['purged']} drafts ({result['skipped']} still published).")

    @app.cli.command("sweep-assets")
    def sweep_assets_command():
        """Retry blob deletions that failed earlier."""
        result = get_engine().gc.sweep()
        click.echo(
            f"Removed {len(result.removed)} blobs, kept {len(result.retained)}, "
            f"{len(result.failed)} still failing."
        )

    @app.cli.command("reconcile-history")
    @click.argument("kind")
    @click.argument("entity_id")
    def reconcile_history_command(kind, entity_id):
        """Checkpoint an entity's draft after its history was repaired by hand."""
        engine = get_engine()
        engine.store(kind)
        with transactional():
            version = engine.history.reconcile(kind, entity_id)
        click.echo(f"Reconciled {kind} {entity_id} at sequence {version.sequence}.")

    @app.cli.command("verify-history")
    @click.argument("kind")
    @click.argument("entity_id")
    def verify_history_command(kind, entity_id):
        """Walk an entity's whole chain back to its latest checkpoint."""
        engine = get_engine()
        engine.store(kind)
        try:
            entries = engine.history.verify_chain(kind, entity_id, full=True)
        except HistoryIntegrityError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"History of {kind} {entity_id} is intact ({len(entries)} entries checked).")
