from typing import Iterable, List

import pandas as pd

from interest_ledger.common.models import Transaction


class TransactionConsolidator:
    @staticmethod
    def consolidate(batches: Iterable[List[Transaction]]) -> List[Transaction]:
        """
        Merges the output of several extractions into one review list.

        One record survives per transaction_hash (the last one seen, in
        input order); the result is ordered newest first. The store's
        unique constraint deduplicates again at persistence time.
        """
        combined = [txn for batch in batches for txn in batch]
        if not combined:
            return []

        df = pd.DataFrame({
            'transaction_hash': [t.transaction_hash for t in combined],
            'date': [t.date for t in combined],
            'position': range(len(combined)),
        })

        deduplicated_df = df.drop_duplicates(subset=['transaction_hash'], keep='last')
        # mergesort is stable: same-day records keep their input order
        ordered = deduplicated_df.sort_values(by='date', ascending=False, kind='mergesort')

        return [combined[pos] for pos in ordered['position']]
