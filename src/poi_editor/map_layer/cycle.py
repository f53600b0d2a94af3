from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable, Hashable, Optional

logger = logging.getLogger("poi.map")


class UpdateCycle:
    """Callbacks deferred to the end of the current UI update.

    Work deferred under the same key is coalesced; only the latest callback
    runs. Callbacks queued while flushing run in the same flush.
    """

    def __init__(self) -> None:
        self._pending: "OrderedDict[Hashable, Callable[[], None]]" = OrderedDict()
        self._anon = 0

    def __len__(self) -> int:
        return len(self._pending)

    def defer(self, callback: Callable[[], None], *, key: Optional[Hashable] = None) -> None:
        if key is None:
            self._anon += 1
            key = ("anon", self._anon)
        self._pending.pop(key, None)
        self._pending[key] = callback

    def cancel(self, key: Hashable) -> None:
        self._pending.pop(key, None)

    def flush(self) -> int:
        ran = 0
        while self._pending:
            _, callback = self._pending.popitem(last=False)
            callback()
            ran += 1
        if ran:
            logger.debug("update cycle flushed %d callbacks", ran)
        return ran
