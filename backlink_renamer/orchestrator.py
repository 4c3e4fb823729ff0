"""Rename orchestration: backlink discovery, per-document rewrite and edit submission."""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .api_client import WikiClient, WikiAPIError, PermissionDeniedError
from .config import RenameSettings
from .link_rewriter import LinkRewriter
from .models import DocumentOutcome, DocumentStatus, RenameJob, RenameReport


class RenameOrchestrator:
    """Drives a rename job document by document.

    Documents are processed strictly one after another. Failures are logged
    and the document skipped; only ``halt_event`` ends a run early.
    """

    def __init__(self, client: WikiClient, settings: RenameSettings,
                 halt_event: Optional[threading.Event] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 on_outcome: Optional[Callable[[DocumentOutcome], None]] = None):
        self.client = client
        self.settings = settings
        self.halt_event = halt_event or threading.Event()
        self.sleep = sleep
        self.on_outcome = on_outcome
        self.logger = logging.getLogger(__name__)

    @property
    def halted(self) -> bool:
        return self.halt_event.is_set()

    def discover_documents(self, old_title: str,
                           namespaces: Sequence[str]) -> Tuple[List[str], Dict[str, str]]:
        """
        Collect documents linking to ``old_title`` across namespaces.

        Returns:
            Sorted, deduplicated document titles and a mapping of namespaces
            whose lookup failed to the error message
        """
        documents = set()
        failed: Dict[str, str] = {}

        for namespace in namespaces:
            try:
                entries = self.client.fetch_backlinks(old_title, namespace)
            except WikiAPIError as e:
                self.logger.error(f"Backlink lookup in namespace '{namespace}' failed: {e}")
                failed[namespace] = str(e)
                continue
            documents.update(entry.document for entry in entries if entry.is_link)

        return sorted(documents), failed

    def _report(self, outcome: DocumentOutcome) -> DocumentOutcome:
        title = f"[[{outcome.title}]]"
        if outcome.status == DocumentStatus.EDITED:
            self.logger.info(f"Edited {title} {outcome.progress}")
        elif outcome.status == DocumentStatus.PERMISSION_DENIED:
            self.logger.warning(f"No permission to edit {title} {outcome.progress}: {outcome.error}")
        elif outcome.status in (DocumentStatus.FETCH_FAILED, DocumentStatus.SUBMIT_FAILED):
            self.logger.error(f"Failed to edit {title} {outcome.progress}: {outcome.error}")
        elif outcome.status == DocumentStatus.DRY_RUN:
            self.logger.info(f"Would edit {title} {outcome.progress} ({outcome.replacements} link(s))")
        else:
            self.logger.debug(f"{outcome.status.value}: {title} {outcome.progress}")

        if self.on_outcome:
            self.on_outcome(outcome)
        return outcome

    def process_document(self, job: RenameJob, rewriter: LinkRewriter, title: str,
                         index: int, total: int, dry_run: bool = False) -> DocumentOutcome:
        """Fetch, rewrite and, if anything changed, submit one document."""

        def outcome(status: DocumentStatus, replacements: int = 0,
                    error: Optional[str] = None) -> DocumentOutcome:
            return self._report(DocumentOutcome(
                title=title, index=index, total=total, status=status,
                replacements=replacements, error=error,
            ))

        try:
            snapshot = self.client.fetch_page(title)
        except PermissionDeniedError as e:
            return outcome(DocumentStatus.PERMISSION_DENIED, error=str(e))
        except WikiAPIError as e:
            return outcome(DocumentStatus.FETCH_FAILED, error=str(e))

        result = rewriter.rewrite(snapshot.body)
        if result.text == snapshot.body:
            return outcome(DocumentStatus.UNCHANGED)

        if dry_run:
            return outcome(DocumentStatus.DRY_RUN, result.replacements)

        # The monitor may have tripped while this page was being fetched
        if self.halted:
            return outcome(DocumentStatus.HALTED, result.replacements)

        try:
            self.client.submit_edit(title, result.text, snapshot.edit_token, job.log_message)
            submitted = outcome(DocumentStatus.EDITED, result.replacements)
        except WikiAPIError as e:
            submitted = outcome(DocumentStatus.SUBMIT_FAILED, result.replacements, str(e))

        self.sleep(self.settings.edit_delay)
        return submitted

    def run(self, job: RenameJob, namespaces: Optional[Sequence[str]] = None,
            dry_run: bool = False) -> RenameReport:
        """Run a rename job to completion or until halted."""
        namespaces = list(namespaces or self.settings.namespaces)
        self.logger.info(f"Renaming links [[{job.old_title}]] -> [[{job.new_title}]] "
                         f"in namespaces: {', '.join(namespaces)}")
        self.logger.debug(f"Edit summary: {job.log_message}")

        report = RenameReport(job=job)
        if self.halted:
            report.halted = True
            return report

        documents, failed = self.discover_documents(job.old_title, namespaces)
        report.documents = documents
        report.failed_namespaces = failed
        total = len(documents)
        self.logger.info(f"Found {total} backlink(s)")

        rewriter = LinkRewriter.from_job(job, self.settings.whitespace_tolerant)
        for index, title in enumerate(documents, start=1):
            if self.halted:
                report.halted = True
                self.logger.warning(f"Run halted before [[{title}]] ({index}/{total})")
                report.outcomes.extend(
                    DocumentOutcome(title=rest, index=i, total=total, status=DocumentStatus.HALTED)
                    for i, rest in enumerate(documents[index - 1:], start=index)
                )
                break
            report.outcomes.append(
                self.process_document(job, rewriter, title, index, total, dry_run=dry_run)
            )

        if report.count(DocumentStatus.HALTED):
            report.halted = True

        self.logger.info(
            f"Finished: {report.edited} edited, {report.unchanged} unchanged, {report.failed} failed"
        )
        return report
