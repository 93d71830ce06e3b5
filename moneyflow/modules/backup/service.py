"""Backup service layer: full-store export and restore."""
from datetime import datetime
from typing import Any, Dict, Mapping
import logging

from moneyflow.core.errors import InvalidBackupFormat
from moneyflow.modules.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = '1.0'

# Document key -> store table, in load order (parents first)
BACKUP_TABLES = (
    ('envelopes', 'envelopes'),
    ('categories', 'categories'),
    ('budgets', 'budgets'),
    ('incomes', 'incomes'),
    ('allocations', 'allocations'),
    ('expenses', 'expenses'),
    ('subsidies', 'subsidies'),
    ('carryovers', 'carryovers'),
    ('monthlySnapshots', 'monthly_snapshots'),
)


class BackupService:
    """Snapshot/restore of every ledger table.

    Neither operation may interleave with ledger mutations; import runs as
    a single unit of work.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def export_all_data(self) -> Dict[str, Any]:
        data = {
            'version': BACKUP_VERSION,
            'exportDate': datetime.utcnow().isoformat(),
        }
        for key, table in BACKUP_TABLES:
            data[key] = self.store.table(table).get_all()

        logger.info('Exported ledger backup: ' + ', '.join(
            f'{key}={len(data[key])}' for key, _ in BACKUP_TABLES
        ))
        return data

    def import_all_data(self, data: Mapping[str, Any]) -> Dict[str, int]:
        """Replace every table with the document's records, keeping their ids."""
        if not isinstance(data, Mapping):
            raise InvalidBackupFormat('document must be an object')
        if not data.get('version'):
            raise InvalidBackupFormat('missing version')
        if 'envelopes' not in data:
            raise InvalidBackupFormat('missing envelopes')

        for key, _ in BACKUP_TABLES:
            records = data.get(key)
            if records is not None and not isinstance(records, list):
                raise InvalidBackupFormat(f'{key} must be a list')

        counts = {}
        with self.store.atomic():
            for _, table in reversed(BACKUP_TABLES):
                self.store.table(table).clear()

            for key, table in BACKUP_TABLES:
                records = data.get(key) or []
                if not records:
                    counts[key] = 0
                    continue
                try:
                    counts[key] = self.store.table(table).bulk_insert(records)
                except (ValueError, TypeError) as e:
                    raise InvalidBackupFormat(f'{key}: {e}') from e

        logger.info(f'Imported ledger backup version {data["version"]}: {counts}')
        return counts
