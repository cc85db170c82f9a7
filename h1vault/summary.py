"""
Offline bounty summary computed from the synced notes' frontmatter.

Mirrors the "Total" and "Best Programs" dashboard queries for use outside
the note-taking app.
"""

import logging

import yaml

from .notes import NOTE_TYPE
from .vault import parse_frontmatter, parse_header_lines

logger = logging.getLogger(__name__)


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def summarize_notes(store, folder) -> dict:
    summary = {'notes': 0, 'total_bounty': 0, 'programs': {}, 'skipped': 0}
    for vault_file in store.list_files(folder.rstrip('/') + '/'):
        text = store.read_file(vault_file.path)
        try:
            metadata = parse_frontmatter(text)
        except yaml.YAMLError as e:
            # Unquoted header values are not always valid YAML
            logger.debug(f"Reading header of {vault_file.path} line by line: {e}")
            metadata = parse_header_lines(text)
        if metadata.get('Type') != NOTE_TYPE:
            summary['skipped'] += 1
            continue

        summary['notes'] += 1
        bounty = _as_int(metadata.get('bounty'))
        if bounty <= 0:
            continue
        program = str(metadata.get('program', 'undefined'))
        summary['total_bounty'] += bounty
        summary['programs'][program] = summary['programs'].get(program, 0) + bounty
    return summary


def print_summary(summary):
    print("\n--- Bug Bounty Summary ---")
    print(f"  Report notes: {summary['notes']}")
    print(f"  Total bounty: {summary['total_bounty']}")
    if summary['skipped']:
        print(f"  Files skipped (not report notes or unreadable): {summary['skipped']}")
    if summary['programs']:
        print("Best programs:")
        ranked = sorted(summary['programs'].items(), key=lambda item: item[1], reverse=True)
        for program, total in ranked:
            print(f"  {program}: {total}")
