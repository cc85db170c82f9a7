"""
Reconciliation of freshly built notes against the notes already in the vault.

Notes are matched by report id, taken from the last hyphen-separated token
of the existing file's base name, so a renamed report keeps its file.
Matched notes are only rewritten when their content differs.
"""

import logging

from .errors import ReconciliationError
from .vault import VaultFile

logger = logging.getLogger(__name__)


def report_id_from_basename(basename) -> str:
    return basename.rsplit('-', 1)[-1]


def index_existing_notes(store, folder) -> dict:
    """Maps report id -> VaultFile for every note under folder."""
    prefix = folder.rstrip('/') + '/'
    index = {}
    for vault_file in store.list_files(prefix):
        report_id = report_id_from_basename(vault_file.basename)
        if report_id in index:
            logger.warning(f"Duplicate note for report {report_id}: {vault_file.path} and {index[report_id].path}. Using the first one.")
            continue
        index[report_id] = vault_file
    logger.debug(f"Found {len(index)} existing report notes under {folder}.")
    return index


def reconcile(notes, store, folder) -> dict:
    """
    Creates, updates or leaves alone one vault file per note, in list order.

    Every note is attempted even if an earlier write failed. If any failed,
    ReconciliationError is raised at the end carrying the failures and the
    counters of the pass.
    """
    existing = index_existing_notes(store, folder)
    counters = {'created': 0, 'updated': 0, 'unchanged': 0, 'errors': 0}
    failures = []

    for note in notes:
        match = existing.get(note.id)
        try:
            if match:
                if store.read_file(match.path) == note.content:
                    logger.debug(f"Report {note.id}: {match.path} unchanged.")
                    counters['unchanged'] += 1
                    continue
                store.write_file(match.path, note.content)
                logger.info(f"Updated {match.path}")
                counters['updated'] += 1
            else:
                store.write_file(note.filename, note.content)
                logger.info(f"Created {note.filename}")
                counters['created'] += 1
                basename = note.filename.rsplit('/', 1)[-1].rsplit('.', 1)[0]
                existing[note.id] = VaultFile(path=note.filename, basename=basename)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error writing note for report {note.id}: {e}")
            counters['errors'] += 1
            failures.append((note.id, str(e)))

    logger.info(
        f"Reconciled {len(notes)} notes: {counters['created']} created, "
        f"{counters['updated']} updated, {counters['unchanged']} unchanged, {counters['errors']} errors."
    )
    if failures:
        raise ReconciliationError(
            f"Unable to write {len(failures)} of {len(notes)} bug notes.",
            failures=failures,
            counters=counters,
        )
    return counters
