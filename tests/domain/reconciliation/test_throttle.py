from __future__ import annotations

import asyncio

from datamanager.domain.reconciliation import ImportOptions, Throttle
from tests.helpers.stores import RecordingSleep


def _drive(throttle: Throttle, options: ImportOptions, records: int) -> None:
    async def _loop() -> None:
        for processed in range(records):
            await throttle.before_record(processed, options)

    asyncio.run(_loop())


def test_batch_delay_applies_at_every_batch_boundary(recording_sleep: RecordingSleep) -> None:
    options = ImportOptions(number_of_items_before_delay=2, delay_after_item_batch=50)

    _drive(Throttle(sleep=recording_sleep), options, 5)

    assert recording_sleep.delays == [0.05, 0.05, 0.05]


def test_item_delay_applies_before_every_record(recording_sleep: RecordingSleep) -> None:
    options = ImportOptions(delay_between_items=10)

    _drive(Throttle(sleep=recording_sleep), options, 3)

    assert recording_sleep.delays == [0.01, 0.01, 0.01]


def test_batch_delay_precedes_item_delay(recording_sleep: RecordingSleep) -> None:
    options = ImportOptions(
        number_of_items_before_delay=2,
        delay_after_item_batch=100,
        delay_between_items=10,
    )

    _drive(Throttle(sleep=recording_sleep), options, 2)

    assert recording_sleep.delays == [0.1, 0.01, 0.01]


def test_non_positive_settings_disable_delays(recording_sleep: RecordingSleep) -> None:
    throttle = Throttle(sleep=recording_sleep)

    _drive(throttle, ImportOptions(number_of_items_before_delay=0, delay_after_item_batch=50), 3)
    _drive(throttle, ImportOptions(number_of_items_before_delay=1, delay_after_item_batch=0), 3)
    _drive(throttle, ImportOptions(delay_between_items=-5), 3)

    assert recording_sleep.delays == []
